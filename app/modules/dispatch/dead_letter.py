"""Dead letter store for jobs that will not be retried automatically."""

import threading
from typing import Any, Dict, List, Optional

from infrastructure.logging import get_module_logger
from modules.dispatch.domain import DeadLetterEntry

logger = get_module_logger()


class InMemoryDeadLetterStore:
    """Append-only, in-process dead letter store.

    Entries are kept in arrival order and never expire; operators inspect
    them through the API.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, DeadLetterEntry] = {}
        self._lock = threading.Lock()

    def add(self, entry: DeadLetterEntry) -> None:
        with self._lock:
            if entry.job_id in self._entries:
                logger.warning("dead_letter_duplicate_ignored", job_id=entry.job_id)
                return
            self._entries[entry.job_id] = entry
        logger.error(
            "job_dead_lettered",
            job_id=entry.job_id,
            channel=entry.job.channel.value,
            reason=entry.reason.value,
            error_code=entry.error_code,
            attempt_count=len(entry.attempt_history),
        )

    def get(self, job_id: str) -> Optional[DeadLetterEntry]:
        with self._lock:
            return self._entries.get(job_id)

    def list(self, limit: int = 50, offset: int = 0) -> List[DeadLetterEntry]:
        with self._lock:
            entries = list(self._entries.values())
        return entries[offset : offset + limit]

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            by_reason: Dict[str, int] = {}
            for entry in self._entries.values():
                by_reason[entry.reason.value] = by_reason.get(entry.reason.value, 0) + 1
            return {"total_entries": len(self._entries), "by_reason": by_reason}
