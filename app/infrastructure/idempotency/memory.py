"""In-memory idempotency ledger."""

import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from infrastructure.idempotency.ledger import IdempotencyLedger
from infrastructure.idempotency.models import (
    IdempotencyRecord,
    IdempotencyStatus,
    make_ledger_key,
)
from infrastructure.logging import get_module_logger

logger = get_module_logger()


class InMemoryIdempotencyLedger(IdempotencyLedger):
    """Thread-safe in-memory ledger.

    Suitable for single-instance deployments, development and tests. For
    multi-instance deployments use the DynamoDB ledger.
    """

    def __init__(self) -> None:
        self._records: Dict[str, IdempotencyRecord] = {}
        self._lock = threading.Lock()

    def get(
        self, caller_id: str, idempotency_key: str, now: Optional[datetime] = None
    ) -> Optional[IdempotencyRecord]:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            record = self._records.get(make_ledger_key(caller_id, idempotency_key))
            if record is None or record.is_expired(now):
                logger.debug(
                    "idempotency_ledger_miss",
                    caller_id=caller_id,
                    idempotency_key=idempotency_key,
                )
                return None
            logger.debug(
                "idempotency_ledger_hit",
                caller_id=caller_id,
                idempotency_key=idempotency_key,
                status=record.status.value,
            )
            return record.copy()

    def create_if_absent(
        self,
        record: IdempotencyRecord,
        lock_timeout_seconds: float,
        now: Optional[datetime] = None,
    ) -> Tuple[bool, Optional[IdempotencyRecord]]:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            existing = self._records.get(record.ledger_key)
            if existing is not None:
                if existing.is_expired(now):
                    logger.info(
                        "idempotency_record_expired_replaced",
                        caller_id=record.caller_id,
                        idempotency_key=record.idempotency_key,
                    )
                elif existing.is_abandoned(lock_timeout_seconds, now):
                    logger.warning(
                        "idempotency_lock_abandoned_replaced",
                        caller_id=record.caller_id,
                        idempotency_key=record.idempotency_key,
                    )
                else:
                    return False, existing.copy()

            self._records[record.ledger_key] = record.copy()
            logger.debug(
                "idempotency_record_created",
                caller_id=record.caller_id,
                idempotency_key=record.idempotency_key,
            )
            return True, record.copy()

    def update(
        self,
        caller_id: str,
        idempotency_key: str,
        status: IdempotencyStatus,
        result_body: Dict[str, Any],
        expected_status: Optional[IdempotencyStatus] = None,
    ) -> Optional[IdempotencyRecord]:
        with self._lock:
            record = self._records.get(make_ledger_key(caller_id, idempotency_key))
            if record is None:
                logger.warning(
                    "idempotency_update_missing_record",
                    caller_id=caller_id,
                    idempotency_key=idempotency_key,
                )
                return None
            if expected_status is not None and record.status != expected_status:
                logger.debug(
                    "idempotency_update_skipped",
                    caller_id=caller_id,
                    idempotency_key=idempotency_key,
                    status=record.status.value,
                    expected_status=expected_status.value,
                )
                return None
            record.status = status
            record.result_body = dict(result_body)
            record.updated_at = datetime.now(timezone.utc)
            return record.copy()

    def delete(self, caller_id: str, idempotency_key: str) -> None:
        with self._lock:
            self._records.pop(make_ledger_key(caller_id, idempotency_key), None)

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            expired = [k for k, r in self._records.items() if r.is_expired(now)]
            for key in expired:
                del self._records[key]
        if expired:
            logger.info("idempotency_records_purged", count=len(expired))
        return len(expired)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            by_status = {status.value: 0 for status in IdempotencyStatus}
            for record in self._records.values():
                by_status[record.status.value] += 1
            return {
                "backend": "memory",
                "total_records": len(self._records),
                **by_status,
            }
