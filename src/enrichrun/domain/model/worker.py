"""State of the shared background enrichment worker."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(slots=True, frozen=True)
class ActiveRun:
    job_handle: str
    run_id: str
    processed: int = 0
    total: int = 0
    current_domain: str | None = None
    current_source_urls: tuple[str, ...] = ()
    keyword: str | None = None
    started_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class WorkerState:
    """Heartbeat of the single worker: whether it is paused and what it is processing."""

    paused: bool = False
    active: ActiveRun | None = None

    @property
    def is_busy(self) -> bool:
        return self.active is not None and not self.paused
