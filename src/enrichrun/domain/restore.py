"""Rebuild a run's client state after a restart.

Providers are tried in priority order: the local cache, the job records kept in the
parsing run's process log, then an in-flight view synthesized from the worker
heartbeat. A job handle cached without results pins the lower tiers to that job and
is returned on its own when they know nothing about it. Each provider is a pure
function of what it is given.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from enrichrun.domain.errors import TransientNetworkError
from enrichrun.domain.merging import merge_results
from enrichrun.domain.model import RunSession, RunSnapshot, RunStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from enrichrun.domain.model import EnrichmentResult, RunProcessLog, WorkerState
    from enrichrun.domain.ports import CachedRun

log = getLogger(__name__)


class RestoreSource(StrEnum):
    CACHE = "cache"
    JOB_LOG = "job_log"
    HEARTBEAT = "heartbeat"


@dataclass(slots=True, frozen=True)
class RestoredRun:
    run_id: str
    source: RestoreSource
    job_handle: str | None = None
    results: dict[str, EnrichmentResult] = field(default_factory=dict[str, "EnrichmentResult"])
    updated_at: dict[str, str] = field(default_factory=dict[str, str])
    snapshot: RunSnapshot | None = None

    def to_session(self) -> RunSession:
        return RunSession(
            run_id=self.run_id,
            job_handle=self.job_handle,
            results=dict(self.results),
            updated_at=dict(self.updated_at),
            snapshot=self.snapshot,
        )


type RestoreProvider = Callable[[], RestoredRun | None]


def from_cache(run_id: str, cached: CachedRun) -> RestoredRun | None:
    if cached.is_miss:
        return None
    return RestoredRun(
        run_id=run_id,
        source=RestoreSource.CACHE,
        job_handle=cached.job_handle,
        results=dict(cached.results),
        updated_at=dict(cached.updated_at),
    )


def from_cached_handle(run_id: str, cached: CachedRun) -> RestoredRun | None:
    """Keep a cached job handle whose results record is still empty."""

    if not cached.job_handle:
        return None
    return RestoredRun(
        run_id=run_id,
        source=RestoreSource.CACHE,
        job_handle=cached.job_handle,
        updated_at=dict(cached.updated_at),
    )


def from_job_log(
    process_log: RunProcessLog,
    *,
    job_handle: str | None = None,
) -> RestoredRun | None:
    """Use the most recent job record that produced results or made progress.

    With ``job_handle`` set, only that job's record is considered.
    """

    for record in reversed(process_log.jobs):
        if job_handle is not None and record.job_handle != job_handle:
            continue
        if not record.results and record.processed <= 0:
            continue
        snapshot = RunSnapshot(
            job_handle=record.job_handle,
            status=record.status,
            run_id=process_log.run_id,
            processed=record.processed,
            total=record.total,
            results=record.results,
        )
        return RestoredRun(
            run_id=process_log.run_id,
            source=RestoreSource.JOB_LOG,
            job_handle=record.job_handle,
            results=merge_results({}, record.results),
            snapshot=snapshot,
        )
    return None


def from_heartbeat(
    run_id: str,
    worker: WorkerState | None,
    process_log: RunProcessLog | None,
    *,
    job_handle: str | None = None,
) -> RestoredRun | None:
    """Synthesize progress without results for a run the worker is (or was) processing.

    With ``job_handle`` set, progress reported for any other job is ignored.
    """

    active = worker.active if worker is not None else None
    if active is not None and active.run_id == run_id:
        snapshot = RunSnapshot(
            job_handle=active.job_handle,
            status=RunStatus.RUNNING,
            run_id=run_id,
            processed=active.processed,
            total=active.total,
            current_domain=active.current_domain,
            current_source_urls=active.current_source_urls,
        )
    elif process_log is not None and process_log.auto is not None:
        auto = process_log.auto
        snapshot = RunSnapshot(
            job_handle=auto.job_handle,
            status=auto.status,
            run_id=run_id,
            processed=auto.processed,
            total=auto.total,
            current_domain=auto.last_domain,
        )
    else:
        return None
    if job_handle is not None and snapshot.job_handle != job_handle:
        return None
    return RestoredRun(
        run_id=run_id,
        source=RestoreSource.HEARTBEAT,
        job_handle=snapshot.job_handle,
        snapshot=snapshot,
    )


def first_available(providers: Iterable[RestoreProvider]) -> RestoredRun | None:
    """Return the first provider's answer that is not ``None``.

    A provider that hits a transient network error is treated as empty.
    """

    for provider in providers:
        try:
            restored = provider()
        except TransientNetworkError as exc:
            log.warning("Restore provider unavailable: %s", exc)
            continue
        if restored is not None:
            log.info("Restored run %s from %s", restored.run_id, restored.source)
            return restored
    return None
