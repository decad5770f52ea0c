"""Run state: status snapshots, per-run sessions and the run's own process log."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .enrichment import EnrichmentResult


class RunStatus(StrEnum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in {RunStatus.COMPLETED, RunStatus.FAILED}


@dataclass(slots=True, frozen=True)
class RunSnapshot:
    """A point-in-time view of a batch job as seen by one poll."""

    job_handle: str
    status: RunStatus
    run_id: str | None = None
    processed: int = 0
    total: int = 0
    current_domain: str | None = None
    current_source_urls: tuple[str, ...] = ()
    results: tuple[EnrichmentResult, ...] = ()
    stalled: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass(slots=True)
class RunSession:
    """Client-side state accumulated while following one run."""

    run_id: str
    job_handle: str | None = None
    results: dict[str, EnrichmentResult] = field(default_factory=dict[str, "EnrichmentResult"])
    updated_at: dict[str, str] = field(default_factory=dict[str, str])
    snapshot: RunSnapshot | None = None

    @property
    def is_terminal(self) -> bool:
        return self.snapshot is not None and self.snapshot.is_terminal


@dataclass(slots=True, frozen=True)
class JobRecord:
    """A finished or in-flight batch persisted inside the originating run's log."""

    job_handle: str
    status: RunStatus
    processed: int = 0
    total: int = 0
    results: tuple[EnrichmentResult, ...] = ()


@dataclass(slots=True, frozen=True)
class AutoJobProgress:
    """Lightweight progress the background worker writes while it processes a run."""

    job_handle: str
    status: RunStatus
    processed: int = 0
    total: int = 0
    last_domain: str | None = None


@dataclass(slots=True, frozen=True)
class RunProcessLog:
    run_id: str
    jobs: tuple[JobRecord, ...] = ()
    auto: AutoJobProgress | None = None


@dataclass(slots=True, frozen=True)
class PendingRun:
    """A parsing run that still has domains waiting for enrichment."""

    run_id: str
    created_at: datetime
    remaining_domains: int
    keyword: str | None = None
