"""Map provider outcomes (HTTP responses, requests and botocore exceptions)
onto OperationResult, so channel adapters and ledgers classify failures the
same way.
"""

from typing import Any, Optional

import requests
from botocore.exceptions import ClientError

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

DEFAULT_RETRY_AFTER_SECONDS = 60

AWS_THROTTLING_CODES = (
    "Throttling",
    "ThrottlingException",
    "ProvisionedThroughputExceededException",
    "RequestLimitExceeded",
)


def _parse_retry_after(value: Optional[str]) -> int:
    if not value:
        return DEFAULT_RETRY_AFTER_SECONDS
    try:
        return max(int(value), 0)
    except (ValueError, TypeError):
        return DEFAULT_RETRY_AFTER_SECONDS


def _provider_error_message(response: requests.Response) -> str:
    """Extract the provider's own error message from a JSON error body."""
    try:
        body: Any = response.json()
    except ValueError:
        return response.text[:200] if response.text else ""

    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            return str(errors[0].get("message", ""))
        if "message" in body:
            return str(body["message"])
    return ""


# Non-2xx statuses with a fixed classification: (status, error code, wording)
_HTTP_FAILURES = {
    401: (OperationStatus.UNAUTHORIZED, "UNAUTHORIZED", "authentication failed"),
    403: (OperationStatus.UNAUTHORIZED, "FORBIDDEN", "authorization denied"),
    404: (OperationStatus.NOT_FOUND, "NOT_FOUND", "resource not found"),
    408: (OperationStatus.TRANSIENT_ERROR, "TIMEOUT", "request timeout"),
}


def classify_http_response(
    response: requests.Response, provider: str = "provider"
) -> OperationResult:
    """Classify a provider HTTP response.

    2xx succeeds with the decoded JSON body (or None) as data. 429 and 5xx
    are transient, 429 with the provider's Retry-After. 401 and 403 are
    unauthorized, 404 is not found and 408 is transient. Any other 4xx is a
    permanent rejection that carries the provider's own error text.
    """
    status_code = response.status_code

    if 200 <= status_code < 300:
        try:
            data = response.json()
        except ValueError:
            data = None
        return OperationResult.success(data=data, message=f"{provider} accepted")

    if status_code == 429:
        return OperationResult.transient_error(
            f"{provider} rate limited",
            error_code="RATE_LIMITED",
            retry_after=_parse_retry_after(response.headers.get("Retry-After")),
        )

    if status_code in _HTTP_FAILURES:
        status, error_code, wording = _HTTP_FAILURES[status_code]
        return OperationResult.error(
            status, f"{provider} {wording}", error_code=error_code
        )

    if status_code >= 500:
        return OperationResult.transient_error(
            f"{provider} server error ({status_code})", error_code="SERVER_ERROR"
        )

    detail = _provider_error_message(response)
    return OperationResult.permanent_error(
        f"{provider} rejected request ({status_code}): {detail}".rstrip(": "),
        error_code=f"HTTP_{status_code}",
    )


def classify_request_exception(
    exc: Exception, provider: str = "provider"
) -> OperationResult:
    """Every requests failure is transient; timeouts keep their own code."""
    if isinstance(exc, requests.Timeout):
        error_code, message = "TIMEOUT", f"{provider} request timed out"
    elif isinstance(exc, requests.ConnectionError):
        error_code = "CONNECTION_ERROR"
        message = f"{provider} connection error: {type(exc).__name__}"
    else:
        error_code = "REQUEST_ERROR"
        message = f"{provider} request error: {type(exc).__name__}: {exc}"
    return OperationResult.transient_error(message, error_code=error_code)


# DynamoDB error codes that are not worth retrying, mapped to (status, code)
_AWS_FAILURES = {
    "AccessDeniedException": (OperationStatus.UNAUTHORIZED, "FORBIDDEN"),
    "UnrecognizedClientException": (OperationStatus.UNAUTHORIZED, "FORBIDDEN"),
    "ResourceNotFoundException": (OperationStatus.NOT_FOUND, "NOT_FOUND"),
    "ValidationException": (OperationStatus.PERMANENT_ERROR, "INVALID_REQUEST"),
    "SerializationException": (OperationStatus.PERMANENT_ERROR, "INVALID_REQUEST"),
}


def classify_aws_error(exc: Exception) -> OperationResult:
    """Classify a boto3/botocore failure from the idempotency table.

    Throttling carries a retry-after hint. Codes in ``_AWS_FAILURES`` are
    final. Anything else, including connection errors that are not a
    ``ClientError``, is treated as transient.
    """
    if not isinstance(exc, ClientError):
        return OperationResult.transient_error(
            f"AWS connection error: {type(exc).__name__}: {exc}",
            error_code="CONNECTION_ERROR",
        )

    code = (exc.response or {}).get("Error", {}).get("Code", "Unknown")
    if code in AWS_THROTTLING_CODES:
        return OperationResult.transient_error(
            f"AWS throttled the request ({code})",
            error_code="RATE_LIMITED",
            retry_after=DEFAULT_RETRY_AFTER_SECONDS,
        )
    if code in _AWS_FAILURES:
        status, error_code = _AWS_FAILURES[code]
        return OperationResult.error(status, f"AWS error: {code}", error_code=error_code)
    return OperationResult.transient_error(
        f"AWS client error: {code}", error_code="AWS_CLIENT_ERROR"
    )
