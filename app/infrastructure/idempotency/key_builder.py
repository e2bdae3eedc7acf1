"""Request fingerprinting for idempotency conflict detection."""

import hashlib
import json
from typing import Any, Iterable, Mapping

# Fields that never take part in the fingerprint
EXCLUDED_FIELDS = frozenset({"idempotency_key", "submitted_at"})


def canonical_json(value: Any) -> str:
    """Serialize value deterministically (sorted keys, compact separators)."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def build_request_hash(
    body: Mapping[str, Any], excluded: Iterable[str] = EXCLUDED_FIELDS
) -> str:
    """Compute the SHA-256 fingerprint of a normalized request body.

    Two submissions with the same idempotency key are "the same request" when
    their fingerprints match. Key order inside the payload does not matter.

    Example:
        >>> build_request_hash({"channel": "email", "payload": {"a": 1, "b": 2}}) == \\
        ...     build_request_hash({"payload": {"b": 2, "a": 1}, "channel": "email"})
        True
    """
    excluded = frozenset(excluded)
    normalized = {k: v for k, v in body.items() if k not in excluded}
    return hashlib.sha256(canonical_json(normalized).encode("utf-8")).hexdigest()
