"""structlog processors used by the dispatch service.

Each factory returns a processor with the standard
``(logger, method_name, event_dict)`` signature.
"""

import threading
from typing import Any, Mapping

REDACTED = "***REDACTED***"

# Key fragments whose values are credentials or recipient addresses
SENSITIVE_PATTERNS = frozenset(
    {
        "password",
        "secret",
        "token",
        "api_key",
        "authorization",
        "credential",
        "jwt",
        "bearer",
        "email_address",
        "phone_number",
        "personalisation",
    }
)


def add_service_info(service_name: str, version: str = "unknown"):
    """Stamp the service name and deployed version on every event."""

    def processor(logger: Any, method_name: str, event_dict: dict) -> dict:
        event_dict.setdefault("service", service_name)
        event_dict.setdefault("version", version)
        return event_dict

    return processor


def add_thread_name(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Record which thread emitted the event (dispatch workers are named)."""
    event_dict.setdefault("thread", threading.current_thread().name)
    return event_dict


def _is_sensitive(key: str, patterns: frozenset) -> bool:
    lowered = key.lower()
    return any(pattern in lowered for pattern in patterns)


def _mask(value: Any, patterns: frozenset) -> Any:
    if isinstance(value, Mapping):
        return {
            key: REDACTED
            if _is_sensitive(str(key), patterns) and item is not None
            else _mask(item, patterns)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_mask(item, patterns) for item in value]
    return value


def mask_sensitive_data(additional_patterns: frozenset[str] | None = None):
    """Redact values whose key contains a sensitive fragment.

    Matching is a case-insensitive substring test, so ``device_token`` and
    ``NOTIFY_API_SECRET`` are both caught. Nested mappings (request payloads,
    provider responses) are walked as well. ``None`` values are left alone.

    Args:
        additional_patterns: Extra key fragments to treat as sensitive.
    """
    patterns = SENSITIVE_PATTERNS | (additional_patterns or frozenset())

    def processor(logger: Any, method_name: str, event_dict: dict) -> dict:
        return _mask(event_dict, patterns)

    return processor


def truncate_large_values(max_length: int = 500):
    """Cut string values longer than max_length, noting the original size.

    Provider error bodies can be arbitrarily large.
    """

    def processor(logger: Any, method_name: str, event_dict: dict) -> dict:
        for key, value in event_dict.items():
            if isinstance(value, str) and len(value) > max_length:
                event_dict[key] = (
                    f"{value[:max_length]}...[truncated, {len(value)} chars total]"
                )
        return event_dict

    return processor
