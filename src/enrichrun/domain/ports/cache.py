"""Port for the per-run persistence cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from enrichrun.domain.model import EnrichmentResult


@dataclass(slots=True, frozen=True)
class CachedRun:
    """The three independently stored records of a cached run.

    Any record may be absent; a missing, empty or unreadable record loads as empty.
    """

    results: dict[str, EnrichmentResult] = field(default_factory=dict[str, "EnrichmentResult"])
    job_handle: str | None = None
    updated_at: dict[str, str] = field(default_factory=dict[str, str])

    @property
    def is_miss(self) -> bool:
        return not self.results


@runtime_checkable
class RunCache(Protocol):
    """Best-effort store keyed by run id. ``save`` never raises."""

    def load(self, run_id: str) -> CachedRun: ...

    def save(self, run_id: str, cached: CachedRun) -> None: ...


__all__ = ["CachedRun", "RunCache"]
