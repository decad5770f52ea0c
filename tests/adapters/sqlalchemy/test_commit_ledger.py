from __future__ import annotations

from typing import TYPE_CHECKING

from enrichrun.adapters.sqlalchemy.ledger import SqlAlchemyCommitLedger
from tests.helpers.enrichment import FIXED_NOW

if TYPE_CHECKING:
    from collections.abc import Callable

    from enrichrun.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork


def test_claim_is_test_and_set(sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork]) -> None:
    ledger = SqlAlchemyCommitLedger(sqlite_unit_of_work, clock=lambda: FIXED_NOW)

    assert ledger.claim("run-1", "job-1")
    assert not ledger.claim("run-1", "job-1")
    assert ledger.claim("run-1", "job-2")
    assert ledger.claim("run-2", "job-1")


def test_release_allows_reclaim(sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork]) -> None:
    ledger = SqlAlchemyCommitLedger(sqlite_unit_of_work, clock=lambda: FIXED_NOW)
    ledger.claim("run-1", "job-1")

    ledger.release("run-1", "job-1")

    assert ledger.claim("run-1", "job-1")


def test_claims_survive_new_ledger_instances(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    SqlAlchemyCommitLedger(sqlite_unit_of_work).claim("run-1", "job-1")

    assert not SqlAlchemyCommitLedger(sqlite_unit_of_work).claim("run-1", "job-1")
