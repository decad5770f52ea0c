"""In-process cache and ledger for tests and one-off CLI invocations."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from .cache_codec import decode_records, encode_records

if TYPE_CHECKING:
    from enrichrun.domain.ports import CachedRun, CommitLedger, RunCache


class InMemoryRunCache:
    """Stores encoded records so reads go through the same decoding as the SQL cache."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, str]] = {}

    def load(self, run_id: str) -> CachedRun:
        return decode_records(run_id, self._records.get(run_id, {}))

    def save(self, run_id: str, cached: CachedRun) -> None:
        self._records[run_id] = encode_records(cached)

    def put_raw(self, run_id: str, kind: str, payload: str) -> None:
        self._records.setdefault(run_id, {})[kind] = payload


class InMemoryCommitLedger:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._claimed: set[tuple[str, str]] = set()

    def claim(self, run_id: str, job_handle: str) -> bool:
        token = (run_id, job_handle)
        with self._lock:
            if token in self._claimed:
                return False
            self._claimed.add(token)
            return True

    def release(self, run_id: str, job_handle: str) -> None:
        with self._lock:
            self._claimed.discard((run_id, job_handle))


if TYPE_CHECKING:
    _cache_check: RunCache = InMemoryRunCache()
    _ledger_check: CommitLedger = InMemoryCommitLedger()
