"""SQL-backed persistence cache: one row per (run id, record kind)."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from enrichrun.adapters.cache_codec import decode_records, encode_records
from enrichrun.domain.ports import CachedRun

from .mappings import run_cache_table
from .unit_of_work import SqlAlchemyUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Callable

    from enrichrun.domain.ports import RunCache

log = getLogger(__name__)


class SqlAlchemyRunCache:
    """Best-effort cache; storage errors are logged and read as misses."""

    def __init__(
        self,
        unit_of_work_factory: Callable[[], SqlAlchemyUnitOfWork] = SqlAlchemyUnitOfWork,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._clock = clock

    def load(self, run_id: str) -> CachedRun:
        statement = select(run_cache_table.c.kind, run_cache_table.c.payload).where(
            run_cache_table.c.run_id == run_id
        )
        try:
            with self._unit_of_work_factory() as uow:
                rows = uow.session.execute(statement).all()
        except SQLAlchemyError as exc:
            log.warning("Could not read cached run %s: %s", run_id, exc)
            return CachedRun()
        return decode_records(run_id, {row.kind: row.payload for row in rows})

    def save(self, run_id: str, cached: CachedRun) -> None:
        records = encode_records(cached)
        now = self._clock()
        try:
            with self._unit_of_work_factory() as uow:
                uow.session.execute(
                    delete(run_cache_table).where(run_cache_table.c.run_id == run_id)
                )
                if records:
                    uow.session.execute(
                        insert(run_cache_table),
                        [
                            {"run_id": run_id, "kind": kind, "payload": payload, "updated_at": now}
                            for kind, payload in records.items()
                        ],
                    )
                uow.commit()
        except SQLAlchemyError as exc:
            log.warning("Could not cache run %s: %s", run_id, exc)


if TYPE_CHECKING:
    _cache_check: RunCache = SqlAlchemyRunCache()
