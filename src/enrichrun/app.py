"""Application entry points wiring the domain services to their adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from enrichrun.adapters.backend import (
    HttpCompanyProfileLookup,
    HttpDomainParser,
    HttpRegistry,
    default_client_factory,
)
from enrichrun.adapters.sqlalchemy import (
    SqlAlchemyCommitLedger,
    SqlAlchemyRunCache,
    is_started,
    startup,
)
from enrichrun.config import get_backend_config, get_polling_config
from enrichrun.domain.auto_commit import AutoCommitter, build_registry_snapshot
from enrichrun.domain.conflicts import ConflictResolver
from enrichrun.domain.errors import ExtractionFailure
from enrichrun.domain.merging import collect_failures
from enrichrun.domain.model import DiscoverySource, RunStatus
from enrichrun.domain.normalization import group_urls
from enrichrun.domain.orchestrator import RunOrchestrator, select_domains_for_enrichment
from enrichrun.domain.queue import QueueCoordinator

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable, Sequence

    from enrichrun.adapters.backend.client import ClientFactory
    from enrichrun.config import BackendConfig, PollingConfig
    from enrichrun.domain.auto_commit import CommitSummary
    from enrichrun.domain.model import (
        PendingRun,
        RegistryDraft,
        RegistryEntry,
        RunSnapshot,
        WorkerState,
    )
    from enrichrun.domain.ports import CommitLedger, Registry, RunCache
    from enrichrun.domain.restore import RestoredRun

log = getLogger(__name__)


@dataclass(slots=True)
class Services:
    orchestrator: RunOrchestrator
    queue: QueueCoordinator
    committer: AutoCommitter
    registry: Registry
    polling: PollingConfig


@dataclass(slots=True, frozen=True)
class FollowResult:
    snapshot: RunSnapshot | None
    summary: CommitSummary | None
    failures: list[ExtractionFailure] = field(default_factory=list[ExtractionFailure])


def build_services(
    *,
    backend: BackendConfig | None = None,
    polling: PollingConfig | None = None,
    cache: RunCache | None = None,
    ledger: CommitLedger | None = None,
    client_factory: ClientFactory = default_client_factory,
) -> Services:
    """Assemble the services; local state defaults to the SQLAlchemy store."""

    if (cache is None or ledger is None) and not is_started():
        startup()
    backend_config = backend or get_backend_config()
    polling_config = polling or get_polling_config()

    parser = HttpDomainParser(backend_config, client_factory=client_factory)
    registry = HttpRegistry(backend_config, client_factory=client_factory)
    profiles = HttpCompanyProfileLookup(backend_config, client_factory=client_factory)

    return Services(
        orchestrator=RunOrchestrator(
            parser,
            cache or SqlAlchemyRunCache(),
            runs=parser,
            worker=parser,
            polling=polling_config,
        ),
        queue=QueueCoordinator(parser, parser),
        committer=AutoCommitter(
            registry,
            profiles,
            ledger or SqlAlchemyCommitLedger(),
            snapshot_limit=polling_config.registry_snapshot_limit,
        ),
        registry=registry,
        polling=polling_config,
    )


def start_enrichment(
    services: Services,
    run_id: str,
    urls: Sequence[str],
    *,
    force: bool = False,
    source: DiscoverySource = DiscoverySource.UNKNOWN,
) -> str:
    """Start a batch for the root domains of ``urls``.

    Registered domains and ones with a known tax ID are left out unless ``force`` is set.
    """

    groups = group_urls(urls, source=source)
    log.info(
        "Grouped %d URL(s) into %d domain(s)",
        sum(group.total_urls for group in groups),
        len(groups),
    )
    for group in groups:
        log.debug("%s: %d URL(s) via %s", group.domain, group.total_urls, sorted(group.sources))
    selected = [group.domain for group in groups]
    if not force:
        cached = services.orchestrator.cached_results(run_id)
        registry = build_registry_snapshot(
            services.registry.list_entries(services.polling.registry_snapshot_limit)
        )
        selected = select_domains_for_enrichment(selected, cached, registry)
        log.info("Selected %d of %d domain(s) for enrichment", len(selected), len(groups))
    return services.orchestrator.start(run_id, selected, force=force)


def follow_run(
    services: Services,
    run_id: str,
    job_handle: str,
    *,
    cancel: threading.Event | None = None,
    on_update: Callable[[RunSnapshot], None] | None = None,
) -> FollowResult:
    """Watch a job to its end and run the bulk commit once it completes."""

    session = services.orchestrator.open_session(run_id, job_handle)
    snapshot = services.orchestrator.watch(session, cancel=cancel, on_update=on_update)
    summary: CommitSummary | None = None
    if snapshot is not None and snapshot.status is RunStatus.COMPLETED:
        summary = services.committer.commit(
            run_id, snapshot.job_handle, snapshot.status, session.results
        )
    return FollowResult(
        snapshot=snapshot, summary=summary, failures=collect_failures(session.results)
    )


def restore_run(services: Services, run_id: str) -> RestoredRun | None:
    return services.orchestrator.restore(run_id)


def commit_run(services: Services, run_id: str) -> CommitSummary | None:
    """Run the bulk commit for the run's latest job if that job has completed."""

    restored = services.orchestrator.restore(run_id)
    if restored is None or restored.job_handle is None:
        log.info("Nothing to commit for run %s", run_id)
        return None
    session = restored.to_session()
    latest = services.orchestrator.poll(restored.job_handle)
    if latest is not None:
        services.orchestrator.apply(session, latest)
    if session.snapshot is None:
        log.info("Status of job %s unknown; not committing", restored.job_handle)
        return None
    return services.committer.commit(
        run_id, session.snapshot.job_handle, session.snapshot.status, session.results
    )


def list_queue(services: Services) -> tuple[WorkerState, list[PendingRun]]:
    pending = services.queue.list_pending()
    return services.queue.state, pending


def save_entry(
    services: Services,
    draft: RegistryDraft,
    *,
    entry_id: int | None = None,
    on_conflict: str = "cancel",
) -> RegistryEntry | None:
    """Create or update one entry, resolving a tax ID conflict with ``on_conflict``.

    ``on_conflict`` is one of ``attach``, ``update`` or ``cancel``.
    """

    resolver = ConflictResolver(services.registry)
    entry = resolver.save(draft, entry_id)
    if resolver.conflict is None:
        return entry
    conflict = resolver.conflict
    log.info(
        "Tax ID %s already belongs to entry %s (%s)",
        draft.tax_id,
        conflict.existing_id,
        conflict.existing_name or "unnamed",
    )
    if on_conflict == "attach":
        resolver.attach_domain()
        log.info("Attached %s to entry %s", draft.domain, conflict.existing_id)
        return None
    if on_conflict == "update":
        return resolver.update_existing()
    resolver.cancel()
    return None
