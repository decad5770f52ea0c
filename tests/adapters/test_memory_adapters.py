from __future__ import annotations

import threading

import pytest

from enrichrun.adapters.cache_codec import JOB_HANDLE, RESULTS, UPDATED_AT
from enrichrun.adapters.memory import InMemoryCommitLedger, InMemoryRunCache
from enrichrun.domain.ports import CachedRun
from tests.helpers.enrichment import make_result


@pytest.mark.parametrize("payload", ["", "not json", "[]", '{"foo.ru": 5}'])
def test_unreadable_results_equal_a_miss(payload: str) -> None:
    cache = InMemoryRunCache()
    cache.put_raw("run-1", RESULTS, payload)

    assert cache.load("run-1") == InMemoryRunCache().load("run-1")
    assert cache.load("run-1").is_miss


def test_records_decode_independently() -> None:
    cache = InMemoryRunCache()
    cache.save("run-1", CachedRun(results={"foo.ru": make_result("foo.ru", inn="7701234567")}))
    cache.put_raw("run-1", UPDATED_AT, "garbage")
    cache.put_raw("run-1", JOB_HANDLE, " job-3 ")

    loaded = cache.load("run-1")

    assert loaded.results["foo.ru"].inn == "7701234567"
    assert loaded.updated_at == {}
    assert loaded.job_handle == "job-3"


def test_ledger_claims_once_across_threads() -> None:
    ledger = InMemoryCommitLedger()
    outcomes: list[bool] = []
    barrier = threading.Barrier(8)

    def claim() -> None:
        barrier.wait()
        outcomes.append(ledger.claim("run-1", "job-1"))

    threads = [threading.Thread(target=claim) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count(True) == 1
    ledger.release("run-1", "job-1")
    assert ledger.claim("run-1", "job-1")
