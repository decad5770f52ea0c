"""Domain port definitions for adapters."""

from __future__ import annotations

from .cache import CachedRun, RunCache
from .jobs import BatchJobGateway, ParsingRunSource, WorkerControl
from .ledger import CommitLedger
from .registry import CompanyProfileLookup, Registry

__all__ = [
    "BatchJobGateway",
    "CachedRun",
    "CommitLedger",
    "CompanyProfileLookup",
    "ParsingRunSource",
    "Registry",
    "RunCache",
    "WorkerControl",
]
