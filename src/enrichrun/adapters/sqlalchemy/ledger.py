"""SQL-backed commit ledger relying on a unique constraint for test-and-set."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert
from sqlalchemy.exc import IntegrityError

from .mappings import commit_ledger_table
from .unit_of_work import SqlAlchemyUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Callable

    from enrichrun.domain.ports import CommitLedger

log = getLogger(__name__)


class SqlAlchemyCommitLedger:
    def __init__(
        self,
        unit_of_work_factory: Callable[[], SqlAlchemyUnitOfWork] = SqlAlchemyUnitOfWork,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._clock = clock

    def claim(self, run_id: str, job_handle: str) -> bool:
        try:
            with self._unit_of_work_factory() as uow:
                uow.session.execute(
                    insert(commit_ledger_table).values(
                        run_id=run_id, job_handle=job_handle, claimed_at=self._clock()
                    )
                )
                uow.commit()
        except IntegrityError:
            log.debug("Commit token for run %s job %s already claimed", run_id, job_handle)
            return False
        return True

    def release(self, run_id: str, job_handle: str) -> None:
        with self._unit_of_work_factory() as uow:
            uow.session.execute(
                delete(commit_ledger_table).where(
                    commit_ledger_table.c.run_id == run_id,
                    commit_ledger_table.c.job_handle == job_handle,
                )
            )
            uow.commit()


if TYPE_CHECKING:
    _ledger_check: CommitLedger = SqlAlchemyCommitLedger()
