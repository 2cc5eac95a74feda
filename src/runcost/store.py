import threading
import time
from dataclasses import dataclass, replace
from enum import Enum

from runcost.models import AggregateResult


class Status(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class StoredResult:
    """
    StoredResult is the persisted state of the latest
    calculation of a repository.
    """

    slug: "str"
    status: "Status"
    result: "AggregateResult | None" = None
    error_message: "str | None" = None
    # unix timestamp of the last status transition
    updated_at: "float" = 0.0


class ResultStore:
    """
    ResultStore: Is a thread-safe store keeping one record per
    repository slug.

    A record moves to pending when a calculation starts and then
    to completed (holding the aggregate) or error (holding the
    message). A completed record keeps its last result while a new
    calculation is pending.

    Supports time-based eviction via evict_before() to prevent
    unbounded memory growth.
    """

    def __init__(self) -> "None":
        self._lock: "threading.Lock" = threading.Lock()
        self._records: "dict[str, StoredResult]" = {}

    def get(self, slug: "str") -> "StoredResult | None":
        with self._lock:
            return self._records.get(slug)

    def mark_pending(self, slug: "str", now: "float | None" = None) -> "bool":
        """
        moves the record of slug to pending, creating it if needed.
        Returns False when a calculation is already pending.
        """
        now = time.time() if now is None else now
        with self._lock:
            current = self._records.get(slug)
            if current is None:
                self._records[slug] = StoredResult(
                    slug=slug, status=Status.PENDING, updated_at=now
                )
                return True

            if current.status is Status.PENDING:
                return False

            self._records[slug] = replace(
                current, status=Status.PENDING, updated_at=now
            )
            return True

    def complete(
        self,
        slug: "str",
        result: "AggregateResult",
        now: "float | None" = None,
    ) -> "StoredResult":
        now = time.time() if now is None else now
        record = StoredResult(
            slug=slug,
            status=Status.COMPLETED,
            result=result,
            error_message=None,
            updated_at=now,
        )
        with self._lock:
            self._records[slug] = record
        return record

    def fail(
        self,
        slug: "str",
        message: "str",
        now: "float | None" = None,
    ) -> "StoredResult":
        """
        moves the record of slug to error. The previous result, if
        any, is kept for display.
        """
        now = time.time() if now is None else now
        with self._lock:
            current = self._records.get(slug)
            record = StoredResult(
                slug=slug,
                status=Status.ERROR,
                result=current.result if current else None,
                error_message=message,
                updated_at=now,
            )
            self._records[slug] = record
        return record

    def is_fresh(self, slug: "str", now: "float", max_age: "float") -> "bool":
        """
        checks if slug has a completed result updated within
        max_age seconds of now.
        """
        with self._lock:
            record = self._records.get(slug)
            if record is None or record.status is not Status.COMPLETED:
                return False
            return now - record.updated_at < max_age

    def evict_before(self, cutoff: "float") -> "int":
        """
        removes all records not updated since cutoff, except pending
        ones. Returns the number of evicted records.
        """
        with self._lock:
            to_remove = [
                slug
                for slug, record in self._records.items()
                if record.updated_at < cutoff and record.status is not Status.PENDING
            ]
            for slug in to_remove:
                del self._records[slug]
            return len(to_remove)
