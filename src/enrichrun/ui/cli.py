from __future__ import annotations

import argparse
import logging
import sys
import threading
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from enrichrun.app import (
    build_services,
    commit_run,
    follow_run,
    list_queue,
    restore_run,
    save_entry,
    start_enrichment,
)
from enrichrun.config import configure_logging
from enrichrun.domain.errors import ValidationError
from enrichrun.domain.model import DiscoverySource, RegistryDraft
from enrichrun.domain.normalization import normalize_domain, require_tax_id

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from enrichrun.app import Services
    from enrichrun.domain.auto_commit import CommitSummary
    from enrichrun.domain.model import RunSnapshot

log = logging.getLogger(__name__)

_CANCEL = threading.Event()


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run and follow domain enrichment jobs")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    start = subparsers.add_parser("start", help="Start enrichment for domains of a parsing run")
    start.add_argument("run_id", help="Parsing run the domains belong to")
    start.add_argument("domains", nargs="+", help="Domains or URLs to enrich")
    start.add_argument(
        "--source",
        choices=[source.value for source in DiscoverySource],
        default=DiscoverySource.UNKNOWN.value,
        help="Search engine the URLs were discovered with",
    )
    start.add_argument(
        "--force",
        action="store_true",
        help="Send every domain, including registered ones and ones with a known tax ID",
    )
    start.add_argument(
        "--watch",
        action="store_true",
        help="Follow the job until it finishes and commit its results",
    )

    watch = subparsers.add_parser("watch", help="Follow a job and commit its results")
    watch.add_argument("run_id")
    watch.add_argument("--job", help="Job handle (defaults to the run's last known job)")

    restore = subparsers.add_parser("restore", help="Show what is known about a run")
    restore.add_argument("run_id")

    commit = subparsers.add_parser("commit", help="Commit a completed run into the registry")
    commit.add_argument("run_id")

    queue = subparsers.add_parser("queue", help="Show the worker and the runs waiting for it")
    queue.add_argument("--position", metavar="RUN_ID", help="Report the queue position of a run")

    worker = subparsers.add_parser("worker", help="Control the background worker")
    worker.add_argument("action", choices=("status", "pause", "resume"))

    register = subparsers.add_parser("register", help="Create or update one registry entry")
    register.add_argument("--name", help="Company name (defaults to the domain)")
    register.add_argument("--inn", required=True, help="Tax ID (10 or 12 digits)")
    register.add_argument("--domain", required=True)
    register.add_argument("--email")
    register.add_argument("--entry-id", type=int, help="Update this entry instead of creating")
    register.add_argument(
        "--on-conflict",
        choices=("attach", "update", "cancel"),
        default="cancel",
        help="What to do when the tax ID already belongs to another entry",
    )

    return parser.parse_args(list(argv))


def _log_progress(snapshot: RunSnapshot) -> None:
    log.info(
        "%s: %s %d/%d%s",
        snapshot.job_handle,
        snapshot.status,
        snapshot.processed,
        snapshot.total,
        f" ({snapshot.current_domain})" if snapshot.current_domain else "",
    )


def _log_summary(summary: CommitSummary | None) -> None:
    if summary is None:
        log.info("Nothing committed")
    elif summary.already_processed:
        log.info("Run %s job %s was already committed", summary.run_id, summary.job_handle)
    elif summary.auth_expired:
        log.info("Registry session expired; log in again and re-run the commit")
    else:
        log.info(
            "Saved %d, skipped %d (exists %d, conflict %d, incomplete %d), failed %d",
            summary.saved,
            summary.skipped,
            summary.skipped_exists,
            summary.skipped_conflict,
            summary.skipped_incomplete,
            summary.failed,
        )


def _watch(services: Services, run_id: str, job_handle: str | None) -> None:
    if job_handle is None:
        restored = restore_run(services, run_id)
        if restored is None or restored.job_handle is None:
            raise ValidationError(f"No job known for run {run_id}")
        job_handle = restored.job_handle
    result = follow_run(services, run_id, job_handle, cancel=_CANCEL, on_update=_log_progress)
    if result.snapshot is not None and result.snapshot.stalled:
        log.warning("Job %s stalled on %s", job_handle, result.snapshot.current_domain)
    if result.failures:
        log.info("%d domain(s) failed extraction", len(result.failures))
        for failure in result.failures:
            log.info("  %s: %s", failure.domain, failure.reason)
    _log_summary(result.summary)


def _queue(services: Services, position_of: str | None) -> None:
    state, pending = list_queue(services)
    if state.active is not None:
        log.info(
            "Worker %s on run %s: %d/%d",
            "paused" if state.paused else "busy",
            state.active.run_id,
            state.active.processed,
            state.active.total,
        )
    else:
        log.info("Worker %s", "paused" if state.paused else "idle")
    for run in pending:
        log.info("  %s  %d domain(s)  %s", run.run_id, run.remaining_domains, run.keyword or "")
    if position_of is not None:
        position = services.queue.queue_position(position_of)
        if position is None:
            log.info("Run %s is not queued", position_of)
        else:
            log.info(
                "Run %s: %d run(s) and %d domain(s) ahead",
                position_of,
                position.runs_ahead,
                position.domains_ahead,
            )


def _worker(services: Services, action: str) -> None:
    if action == "pause":
        if services.queue.pause():
            log.info("Worker paused; the current domain will finish first")
    elif action == "resume":
        outcome = services.queue.resume()
        if outcome.already_active and outcome.active is not None:
            log.info("Worker is already processing run %s", outcome.active.run_id)
        elif outcome.resumed:
            log.info("Worker resumed")
    else:
        state = services.queue.status()
        log.info(
            "paused=%s active=%s",
            state.paused,
            state.active.run_id if state.active is not None else None,
        )


def _register(services: Services, args: argparse.Namespace) -> None:
    domain = normalize_domain(args.domain)
    if not domain:
        raise ValidationError("A domain is required")
    draft = RegistryDraft(
        name=args.name or domain,
        tax_id=require_tax_id(args.inn),
        domain=domain,
        email=args.email,
    )
    entry = save_entry(services, draft, entry_id=args.entry_id, on_conflict=args.on_conflict)
    if entry is not None:
        log.info("Saved entry %s (%s)", entry.id, entry.name)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        services = build_services()
        if parsed_args.command == "start":
            job_handle = start_enrichment(
                services,
                parsed_args.run_id,
                parsed_args.domains,
                force=parsed_args.force,
                source=DiscoverySource(parsed_args.source),
            )
            log.info("Started job %s", job_handle)
            if parsed_args.watch:
                _watch(services, parsed_args.run_id, job_handle)
        elif parsed_args.command == "watch":
            _watch(services, parsed_args.run_id, parsed_args.job)
        elif parsed_args.command == "restore":
            restored = restore_run(services, parsed_args.run_id)
            if restored is None:
                log.info("Nothing known about run %s", parsed_args.run_id)
            else:
                log.info(
                    "Run %s from %s: job=%s, %d result key(s)",
                    restored.run_id,
                    restored.source,
                    restored.job_handle,
                    len(restored.results),
                )
                if restored.snapshot is not None:
                    _log_progress(restored.snapshot)
        elif parsed_args.command == "commit":
            _log_summary(commit_run(services, parsed_args.run_id))
        elif parsed_args.command == "queue":
            _queue(services, parsed_args.position)
        elif parsed_args.command == "worker":
            _worker(services, parsed_args.action)
        elif parsed_args.command == "register":
            _register(services, parsed_args)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) by letting a running watch stop after its current wait."""
    if _CANCEL.is_set():
        sys.exit(130)
    log.info("Stopping (Ctrl+C again to abort)")
    _CANCEL.set()


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
