"""Infrastructure idempotency ledger.

Deduplicates submissions keyed by (caller_id, idempotency_key). The first
submission atomically creates a pending record (the submission lock); later
submissions either replay the stored response or are rejected when the
request fingerprint differs.

Backends:
- memory: single-instance deployments, development and tests
- dynamodb: shared table for multi-instance deployments

Usage:

    from infrastructure.idempotency import (
        IdempotencyRecord,
        build_request_hash,
        create_ledger,
    )

    ledger = create_ledger(settings)
    record = IdempotencyRecord.new_pending(caller, key, build_request_hash(body), ttl)
    created, existing = ledger.create_if_absent(record, lock_timeout_seconds=30)
"""

from infrastructure.idempotency.dynamodb import DynamoDBIdempotencyLedger
from infrastructure.idempotency.factory import create_ledger
from infrastructure.idempotency.key_builder import build_request_hash, canonical_json
from infrastructure.idempotency.ledger import IdempotencyLedger, IdempotencyLedgerError
from infrastructure.idempotency.memory import InMemoryIdempotencyLedger
from infrastructure.idempotency.models import (
    IdempotencyRecord,
    IdempotencyStatus,
    make_ledger_key,
)

__all__ = [
    "IdempotencyLedger",
    "IdempotencyLedgerError",
    "InMemoryIdempotencyLedger",
    "DynamoDBIdempotencyLedger",
    "IdempotencyRecord",
    "IdempotencyStatus",
    "build_request_hash",
    "canonical_json",
    "create_ledger",
    "make_ledger_key",
]
