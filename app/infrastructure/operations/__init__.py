"""Uniform results for provider calls and the classifiers that produce them."""

from infrastructure.operations.classifiers import (
    classify_aws_error,
    classify_http_response,
    classify_request_exception,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "classify_aws_error",
    "classify_http_response",
    "classify_request_exception",
]
