"""Start batch enrichment jobs and follow them until they finish."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from functools import cache
from logging import getLogger
from typing import TYPE_CHECKING

from enrichrun.config.polling import PollingConfig
from enrichrun.domain.errors import TransientNetworkError, ValidationError
from enrichrun.domain.merging import lookup, merge_results, touch_timestamps
from enrichrun.domain.model import RunSession, RunStatus
from enrichrun.domain.normalization import normalize_domain
from enrichrun.domain.ports import CachedRun
from enrichrun.domain.restore import (
    first_available,
    from_cache,
    from_cached_handle,
    from_heartbeat,
    from_job_log,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from enrichrun.domain.model import (
        EnrichmentResult,
        RegistrySnapshot,
        RunProcessLog,
        RunSnapshot,
    )
    from enrichrun.domain.ports import (
        BatchJobGateway,
        ParsingRunSource,
        RunCache,
        WorkerControl,
    )
    from enrichrun.domain.restore import RestoredRun

    type UpdateCallback = Callable[[RunSnapshot], None]

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def select_domains_for_enrichment(
    domains: Iterable[str],
    results: Mapping[str, EnrichmentResult],
    registry: RegistrySnapshot | None = None,
) -> list[str]:
    """Drop domains that are blank, repeated, already registered or already have a tax ID."""

    selected: list[str] = []
    seen: set[str] = set()
    for domain in domains:
        root = normalize_domain(domain)
        if not root or root in seen:
            continue
        seen.add(root)
        if registry is not None and registry.contains_domain(root):
            continue
        current = lookup(results, domain)
        if current is not None and current.has_tax_id:
            continue
        selected.append(domain.strip())
    return selected


@dataclass(slots=True)
class _StallTracker:
    """Flags a running job whose progress marker stopped moving."""

    timeout_seconds: float
    monotonic: Callable[[], float]
    _marker: tuple[int, str | None] | None = None
    _since: float = 0.0

    def observe(self, snapshot: RunSnapshot) -> bool:
        now = self.monotonic()
        marker = (snapshot.processed, snapshot.current_domain)
        if marker != self._marker or snapshot.status is not RunStatus.RUNNING:
            self._marker = marker
            self._since = now
            return False
        return now - self._since > self.timeout_seconds


class RunOrchestrator:
    """Owns the client-side lifecycle of enrichment runs."""

    def __init__(
        self,
        jobs: BatchJobGateway,
        cache: RunCache,
        *,
        runs: ParsingRunSource | None = None,
        worker: WorkerControl | None = None,
        polling: PollingConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._jobs = jobs
        self._cache = cache
        self._runs = runs
        self._worker = worker
        self._polling = polling or PollingConfig()
        self._clock = clock
        self._monotonic = monotonic

    def start(self, run_id: str, domains: Sequence[str], *, force: bool = False) -> str:
        """Submit ``domains`` as one batch job and remember its handle for ``run_id``.

        Domains are sent as given; use ``select_domains_for_enrichment`` beforehand to
        skip work that is already done.
        """

        cleaned = [domain.strip() for domain in domains if domain and domain.strip()]
        if not cleaned:
            raise ValidationError("No domains selected for enrichment")
        job_handle = self._jobs.start_batch(run_id, cleaned, force=force)
        log.info("Started job %s for run %s with %d domain(s)", job_handle, run_id, len(cleaned))
        cached = self._cache.load(run_id)
        self._cache.save(run_id, replace(cached, job_handle=job_handle))
        return job_handle

    def cached_results(self, run_id: str) -> dict[str, EnrichmentResult]:
        return dict(self._cache.load(run_id).results)

    def open_session(self, run_id: str, job_handle: str) -> RunSession:
        """Start following ``job_handle``, seeded with what the cache already knows."""

        cached = self._cache.load(run_id)
        return RunSession(
            run_id=run_id,
            job_handle=job_handle,
            results=dict(cached.results),
            updated_at=dict(cached.updated_at),
        )

    def poll(self, job_handle: str) -> RunSnapshot | None:
        try:
            return self._jobs.fetch_status(job_handle)
        except TransientNetworkError as exc:
            log.warning("Status poll for job %s missed: %s", job_handle, exc)
            return None

    def apply(self, session: RunSession, snapshot: RunSnapshot) -> RunSnapshot:
        """Fold ``snapshot`` into ``session`` and persist the merged state.

        Progress counters only move forward within one job, and nothing arriving
        after the job's terminal snapshot is applied.
        """

        previous = session.snapshot
        same_job = previous is not None and previous.job_handle == snapshot.job_handle
        if same_job and previous.is_terminal:
            return previous
        if same_job:
            snapshot = replace(
                snapshot,
                processed=max(previous.processed, snapshot.processed),
                total=max(previous.total, snapshot.total),
            )

        session.job_handle = snapshot.job_handle
        session.snapshot = snapshot
        if snapshot.results:
            session.results = merge_results(session.results, snapshot.results)
            session.updated_at = touch_timestamps(
                session.updated_at, snapshot.results, self._clock()
            )
        self._cache.save(
            session.run_id,
            CachedRun(
                results=session.results,
                job_handle=session.job_handle,
                updated_at=session.updated_at,
            ),
        )
        return snapshot

    def watch(
        self,
        session: RunSession,
        *,
        cancel: threading.Event | None = None,
        on_update: UpdateCallback | None = None,
    ) -> RunSnapshot | None:
        """Poll the session's job until it finishes, stalls or ``cancel`` is set."""

        if session.job_handle is None:
            raise ValidationError(f"Run {session.run_id} has no job to watch")
        cancel = cancel or threading.Event()
        tracker = _StallTracker(self._polling.domain_timeout_seconds, self._monotonic)

        while not cancel.is_set():
            snapshot = self.poll(session.job_handle)
            if snapshot is not None:
                current = self.apply(session, snapshot)
                if tracker.observe(current):
                    current = replace(current, stalled=True)
                    session.snapshot = current
                    log.warning(
                        "Job %s made no progress on %s for %.0fs; giving up",
                        current.job_handle,
                        current.current_domain or "its current domain",
                        self._polling.domain_timeout_seconds,
                    )
                if on_update is not None:
                    on_update(current)
                if current.is_terminal or current.stalled:
                    return current
            if cancel.wait(self._polling.poll_interval_seconds):
                break
        log.info("Stopped watching job %s", session.job_handle)
        return session.snapshot

    def restore(self, run_id: str) -> RestoredRun | None:
        runs = self._runs
        worker = self._worker
        cached_run = self._cache.load(run_id)
        pinned = cached_run.job_handle

        @cache
        def process_log() -> RunProcessLog | None:
            return runs.fetch_process_log(run_id) if runs is not None else None

        def cached() -> RestoredRun | None:
            return from_cache(run_id, cached_run)

        def job_log() -> RestoredRun | None:
            found = process_log()
            return from_job_log(found, job_handle=pinned) if found is not None else None

        def heartbeat() -> RestoredRun | None:
            state = worker.worker_status() if worker is not None else None
            try:
                found = process_log()
            except TransientNetworkError:
                found = None
            return from_heartbeat(run_id, state, found, job_handle=pinned)

        def handle_only() -> RestoredRun | None:
            return from_cached_handle(run_id, cached_run)

        return first_available((cached, job_log, heartbeat, handle_only))
