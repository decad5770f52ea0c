from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, inspect, insert, select

from enrichrun.adapters.sqlalchemy.mappings import commit_ledger_table
from enrichrun.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from tests.helpers.enrichment import FIXED_NOW

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    assert not is_started()

    with pytest.raises(StartupError):
        SqlAlchemyUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_startup_creates_tables(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    assert set(inspect(sqlite_engine).get_table_names()) >= {"run_cache_record", "commit_ledger"}


def test_uncommitted_work_is_rolled_back(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemyUnitOfWork() as uow:
        uow.session.execute(
            insert(commit_ledger_table).values(
                run_id="run-1", job_handle="job-1", claimed_at=FIXED_NOW
            )
        )
        raise RuntimeError("boom")

    with SqlAlchemyUnitOfWork() as uow:
        rows = uow.session.execute(select(commit_ledger_table)).all()
    assert rows == []
