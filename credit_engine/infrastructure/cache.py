"""In-process latest-result cache, one TTL-bounded slot per applicant"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from credit_engine.domain.models import EvaluationRecord
from credit_engine.infrastructure.observability.metrics import cache_counter


@dataclass(frozen=True)
class CacheEntry:
    record: EvaluationRecord
    expires_at: float
    completed_at: float


class LatestResultCache:
    """
    Most recent evaluation per applicant.

    A read optimization only: dropping an entry never changes a decision, the
    store is authoritative. Writes are last-writer-wins by completion time, so
    a slow evaluation that started first cannot replace a newer result.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, document_id: str) -> Optional[EvaluationRecord]:
        """Return the cached record, or None on a miss or an expired entry"""
        with self._lock:
            entry = self._entries.get(document_id)
            if entry is not None and entry.expires_at <= self.clock():
                del self._entries[document_id]
                entry = None

        cache_counter.labels(result="hit" if entry else "miss").inc()
        return entry.record if entry else None

    def put(self, record: EvaluationRecord, completed_at: Optional[float] = None) -> bool:
        """
        Store a record, resetting the applicant's TTL.

        Args:
            record: Finished evaluation record
            completed_at: Clock reading taken when the evaluation finished

        Returns:
            False when a newer completion is already cached and the write is dropped
        """
        now = self.clock()
        completed_at = now if completed_at is None else completed_at

        with self._lock:
            self._evict_expired(now)
            current = self._entries.get(record.document_id)
            if current is not None and current.expires_at > now and current.completed_at > completed_at:
                return False
            self._entries[record.document_id] = CacheEntry(
                record=record,
                expires_at=now + self.ttl_seconds,
                completed_at=completed_at,
            )
            return True

    def _evict_expired(self, now: float) -> None:
        # Caller holds the lock
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]

    def invalidate(self, document_id: str) -> None:
        with self._lock:
            self._entries.pop(document_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
