"""SQLAlchemy persistence for cached runs and the commit ledger."""

from __future__ import annotations

from .cache import SqlAlchemyRunCache
from .ledger import SqlAlchemyCommitLedger
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCommitLedger",
    "SqlAlchemyRunCache",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "configured_engine",
    "is_started",
    "shutdown",
    "startup",
]
