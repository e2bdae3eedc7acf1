"""Idempotency ledger abstract base class."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from infrastructure.idempotency.models import IdempotencyRecord, IdempotencyStatus
from infrastructure.operations import OperationResult


class IdempotencyLedgerError(Exception):
    """Raised when the ledger backend cannot complete an operation.

    Attributes:
        result: Classified OperationResult describing the backend failure
    """

    def __init__(self, message: str, result: Optional[OperationResult] = None):
        super().__init__(message)
        self.result = result


class IdempotencyLedger(ABC):
    """Abstract base class for idempotency ledger implementations.

    Stores one record per (caller_id, idempotency_key). Implementations must
    make ``create_if_absent`` atomic: two concurrent submissions with the same
    key can never both create a record.

    Expired records and abandoned locks (pending, no stored response, older
    than the lock timeout) are treated as absent.
    """

    @abstractmethod
    def get(
        self, caller_id: str, idempotency_key: str, now: Optional[datetime] = None
    ) -> Optional[IdempotencyRecord]:
        """Return the live record for the key, or None if absent/expired."""

    @abstractmethod
    def create_if_absent(
        self,
        record: IdempotencyRecord,
        lock_timeout_seconds: float,
        now: Optional[datetime] = None,
    ) -> Tuple[bool, Optional[IdempotencyRecord]]:
        """Atomically create record unless a live one exists.

        Returns:
            (True, record) when created, (False, existing) otherwise.
        """

    @abstractmethod
    def update(
        self,
        caller_id: str,
        idempotency_key: str,
        status: IdempotencyStatus,
        result_body: Dict[str, Any],
        expected_status: Optional[IdempotencyStatus] = None,
    ) -> Optional[IdempotencyRecord]:
        """Store the outcome and response body.

        Args:
            expected_status: When given, only update a record currently in
                this status.

        Returns:
            The updated record, or None if the record no longer exists or
            its status did not match expected_status.
        """

    @abstractmethod
    def delete(self, caller_id: str, idempotency_key: str) -> None:
        """Release the key (used when a submission is rolled back)."""

    @abstractmethod
    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Remove expired records.

        Returns:
            Number of records removed.
        """

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Return backend statistics (implementation-specific)."""
