"""Coordinate runs that share the single background enrichment worker."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING

from enrichrun.domain.model import WorkerState

if TYPE_CHECKING:
    from enrichrun.domain.model import ActiveRun, PendingRun
    from enrichrun.domain.ports import ParsingRunSource, WorkerControl

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ResumeOutcome:
    resumed: bool
    already_active: bool = False
    active: ActiveRun | None = None


@dataclass(slots=True, frozen=True)
class QueuePosition:
    """Where a run sits behind the worker: runs and domains ahead of it."""

    run_id: str
    runs_ahead: int
    domains_ahead: int
    is_active: bool = False


class QueueCoordinator:
    """Single owner of the worker state as seen by this client.

    Pausing is cooperative on the server: the worker finishes the domain it is on
    before it stops taking new ones.
    """

    def __init__(self, worker: WorkerControl, runs: ParsingRunSource) -> None:
        self._worker = worker
        self._runs = runs
        self._lock = threading.Lock()
        self._state = WorkerState()

    @property
    def state(self) -> WorkerState:
        with self._lock:
            return self._state

    def _set_state(self, state: WorkerState) -> WorkerState:
        with self._lock:
            self._state = state
            return state

    def status(self) -> WorkerState:
        """Refresh the worker heartbeat."""

        return self._set_state(self._worker.worker_status())

    def active_run(self) -> ActiveRun | None:
        state = self.status()
        return state.active if state.is_busy else None

    def list_pending(self) -> list[PendingRun]:
        """Runs waiting for the worker, oldest first."""

        return self._pending(self.status())

    def _pending(self, state: WorkerState) -> list[PendingRun]:
        active_run_id = state.active.run_id if state.active is not None else None
        pending = [
            run
            for run in self._runs.list_pending_runs()
            if run.remaining_domains > 0 and run.run_id != active_run_id
        ]
        pending.sort(key=lambda run: (run.created_at, run.run_id))
        return pending

    def pause(self) -> bool:
        paused = self._worker.pause()
        if paused:
            self._set_state(replace(self.state, paused=True))
            log.info("Worker pause requested; the current domain will finish first")
        return paused

    def resume(self) -> ResumeOutcome:
        state = self.status()
        if state.active is not None and not state.paused:
            log.info("Worker already processing run %s", state.active.run_id)
            return ResumeOutcome(resumed=False, already_active=True, active=state.active)
        resumed = self._worker.resume()
        if resumed:
            self._set_state(replace(state, paused=False))
        return ResumeOutcome(resumed=resumed, active=state.active)

    def queue_position(self, run_id: str) -> QueuePosition | None:
        """Return how much work is ahead of ``run_id``, or ``None`` when it is not queued."""

        state = self.status()
        if state.active is not None and state.active.run_id == run_id:
            return QueuePosition(run_id=run_id, runs_ahead=0, domains_ahead=0, is_active=True)

        domains_ahead = 0
        if state.active is not None:
            domains_ahead = max(state.active.total - state.active.processed, 0)
        runs_ahead = 1 if state.active is not None else 0
        for run in self._pending(state):
            if run.run_id == run_id:
                return QueuePosition(
                    run_id=run_id, runs_ahead=runs_ahead, domains_ahead=domains_ahead
                )
            runs_ahead += 1
            domains_ahead += run.remaining_domains
        return None
