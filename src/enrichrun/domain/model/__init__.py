"""Domain model for enrichment runs."""

from __future__ import annotations

from .enrichment import (
    DiscoverySource,
    DomainGroup,
    EnrichmentResult,
    ExtractionLogEntry,
    SourceUrl,
)
from .registry import (
    CompanyProfile,
    ConflictDetails,
    DataStatus,
    EntryKind,
    RegistryDraft,
    RegistryEntry,
    RegistrySnapshot,
)
from .run import (
    AutoJobProgress,
    JobRecord,
    PendingRun,
    RunProcessLog,
    RunSession,
    RunSnapshot,
    RunStatus,
)
from .worker import ActiveRun, WorkerState

type ResultMap = dict[str, EnrichmentResult]

__all__ = [
    "ActiveRun",
    "AutoJobProgress",
    "CompanyProfile",
    "ConflictDetails",
    "DataStatus",
    "DiscoverySource",
    "DomainGroup",
    "EnrichmentResult",
    "EntryKind",
    "ExtractionLogEntry",
    "JobRecord",
    "PendingRun",
    "RegistryDraft",
    "RegistryEntry",
    "RegistrySnapshot",
    "ResultMap",
    "RunProcessLog",
    "RunSession",
    "RunSnapshot",
    "RunStatus",
    "SourceUrl",
    "WorkerState",
]
