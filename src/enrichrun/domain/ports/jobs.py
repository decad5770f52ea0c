"""Ports for the extraction engine's batch jobs and its shared worker."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from enrichrun.domain.model import PendingRun, RunProcessLog, RunSnapshot, WorkerState


@runtime_checkable
class BatchJobGateway(Protocol):
    """Start batch extraction jobs and read their status."""

    def start_batch(self, run_id: str, domains: Sequence[str], *, force: bool = False) -> str:
        """Submit ``domains`` for extraction and return the job handle."""
        ...

    def fetch_status(self, job_handle: str) -> RunSnapshot: ...


@runtime_checkable
class WorkerControl(Protocol):
    def worker_status(self) -> WorkerState: ...

    def pause(self) -> bool: ...

    def resume(self) -> bool: ...


@runtime_checkable
class ParsingRunSource(Protocol):
    """Read access to the parsing runs that feed domains into enrichment."""

    def fetch_process_log(self, run_id: str) -> RunProcessLog: ...

    def list_pending_runs(self) -> list[PendingRun]: ...


__all__ = ["BatchJobGateway", "ParsingRunSource", "WorkerControl"]
