from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import insert, select

from enrichrun.adapters.cache_codec import JOB_HANDLE, RESULTS, UPDATED_AT
from enrichrun.adapters.sqlalchemy.cache import SqlAlchemyRunCache
from enrichrun.adapters.sqlalchemy.mappings import run_cache_table
from enrichrun.domain.model import EnrichmentResult, ExtractionLogEntry
from enrichrun.domain.ports import CachedRun
from tests.helpers.enrichment import FIXED_NOW, make_result

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine

    from enrichrun.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork


def _cache(factory: Callable[[], SqlAlchemyUnitOfWork]) -> SqlAlchemyRunCache:
    return SqlAlchemyRunCache(factory, clock=lambda: FIXED_NOW)


def _kinds(factory: Callable[[], SqlAlchemyUnitOfWork], run_id: str) -> set[str]:
    with factory() as uow:
        rows = uow.session.execute(
            select(run_cache_table.c.kind).where(run_cache_table.c.run_id == run_id)
        ).all()
    return {row.kind for row in rows}


def test_round_trip(sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork]) -> None:
    cache = _cache(sqlite_unit_of_work)
    result = EnrichmentResult(
        domain="foo.ru",
        inn="7701234567",
        emails=("a@foo.ru",),
        strategy_time_ms=850,
        extraction_log=(ExtractionLogEntry(url="https://foo.ru", inn_found="7701234567"),),
    )
    cached = CachedRun(
        results={"foo.ru": result},
        job_handle="job-1",
        updated_at={"foo.ru": "2024-05-01T12:00:00+00:00"},
    )

    cache.save("run-1", cached)

    assert cache.load("run-1") == cached
    assert _kinds(sqlite_unit_of_work, "run-1") == {RESULTS, JOB_HANDLE, UPDATED_AT}


def test_unknown_run_is_a_miss(sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork]) -> None:
    loaded = _cache(sqlite_unit_of_work).load("missing")

    assert loaded.is_miss
    assert loaded.job_handle is None


def test_empty_records_are_not_written(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    cache = _cache(sqlite_unit_of_work)

    cache.save("run-1", CachedRun(job_handle="  "))

    assert _kinds(sqlite_unit_of_work, "run-1") == set()


def test_save_replaces_previous_records(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    cache = _cache(sqlite_unit_of_work)
    cache.save(
        "run-1",
        CachedRun(results={"foo.ru": make_result("foo.ru")}, job_handle="job-1"),
    )

    cache.save("run-1", CachedRun(results={"bar.ru": make_result("bar.ru")}))

    loaded = cache.load("run-1")
    assert set(loaded.results) == {"bar.ru"}
    assert loaded.job_handle is None


def test_corrupt_record_reads_as_empty(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.session.execute(
            insert(run_cache_table),
            [
                {"run_id": "run-1", "kind": kind, "payload": payload, "updated_at": FIXED_NOW}
                for kind, payload in ((RESULTS, "{not json"), (JOB_HANDLE, "job-9"))
            ],
        )
        uow.commit()

    loaded = _cache(sqlite_unit_of_work).load("run-1")

    assert loaded.is_miss
    assert loaded.job_handle == "job-9"


def test_storage_errors_read_as_miss(
    sqlite_engine: Engine,
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    cache = _cache(sqlite_unit_of_work)
    cache.save("run-1", CachedRun(results={"foo.ru": make_result("foo.ru")}))
    run_cache_table.drop(sqlite_engine)

    assert cache.load("run-1").is_miss
    cache.save("run-1", CachedRun(results={"foo.ru": make_result("foo.ru")}))
