"""Reusable fakes and builders for enrichment run tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from itertools import count
from typing import TYPE_CHECKING

from enrichrun.domain.errors import RegistryConflict
from enrichrun.domain.model import (
    ConflictDetails,
    EnrichmentResult,
    RegistryEntry,
    RunProcessLog,
    RunSnapshot,
    RunStatus,
    WorkerState,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from enrichrun.domain.model import CompanyProfile, PendingRun, RegistryDraft


def make_result(
    domain: str,
    *,
    inn: str | None = None,
    emails: Sequence[str] = (),
    error: str | None = None,
) -> EnrichmentResult:
    return EnrichmentResult(domain=domain, inn=inn, emails=tuple(emails), error=error)


def make_snapshot(
    job_handle: str = "job-1",
    status: RunStatus = RunStatus.RUNNING,
    *,
    processed: int = 0,
    total: int = 0,
    current_domain: str | None = None,
    results: Iterable[EnrichmentResult] = (),
    run_id: str | None = "run-1",
) -> RunSnapshot:
    return RunSnapshot(
        job_handle=job_handle,
        status=status,
        run_id=run_id,
        processed=processed,
        total=total,
        current_domain=current_domain,
        results=tuple(results),
    )


class FakeJobs:
    """Scripted batch job gateway: each poll returns the next queued item."""

    def __init__(self, polls: Iterable[RunSnapshot | Exception] = (), job_handle: str = "job-1"):
        self._polls = list(polls)
        self.job_handle = job_handle
        self.started: list[tuple[str, list[str], bool]] = []
        self.poll_count = 0

    def start_batch(self, run_id: str, domains: Sequence[str], *, force: bool = False) -> str:
        self.started.append((run_id, list(domains), force))
        return self.job_handle

    def fetch_status(self, job_handle: str) -> RunSnapshot:
        self.poll_count += 1
        item = self._polls.pop(0) if len(self._polls) > 1 else self._polls[0]
        if isinstance(item, Exception):
            raise item
        return item


@dataclass
class FakeWorker:
    state: WorkerState = field(default_factory=WorkerState)
    pause_calls: int = 0
    resume_calls: int = 0

    def worker_status(self) -> WorkerState:
        return self.state

    def pause(self) -> bool:
        self.pause_calls += 1
        self.state = WorkerState(paused=True, active=self.state.active)
        return True

    def resume(self) -> bool:
        self.resume_calls += 1
        self.state = WorkerState(paused=False, active=self.state.active)
        return True


@dataclass
class FakeRuns:
    logs: dict[str, RunProcessLog] = field(default_factory=dict)
    pending: list[PendingRun] = field(default_factory=list)
    error: Exception | None = None

    def fetch_process_log(self, run_id: str) -> RunProcessLog:
        if self.error is not None:
            raise self.error
        return self.logs.get(run_id, RunProcessLog(run_id=run_id))

    def list_pending_runs(self) -> list[PendingRun]:
        return list(self.pending)


class FakeRegistry:
    """In-memory registry enforcing tax ID uniqueness the way the real one does."""

    def __init__(self, entries: Iterable[RegistryEntry] = ()) -> None:
        self.entries: dict[int, RegistryEntry] = {entry.id: entry for entry in entries}
        self._ids = count(max(self.entries, default=0) + 1)
        self.created: list[RegistryDraft] = []
        self.updated: list[tuple[int, RegistryDraft]] = []
        self.attached: list[tuple[int, str, str | None]] = []
        self.list_error: Exception | None = None
        self.create_errors: dict[str, Exception] = {}

    def list_entries(self, limit: int) -> list[RegistryEntry]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.entries.values())[:limit]

    def _owner_of(self, tax_id: str | None, *, exclude: int | None = None) -> RegistryEntry | None:
        for entry in self.entries.values():
            if tax_id and entry.tax_id == tax_id and entry.id != exclude:
                return entry
        return None

    def create(self, draft: RegistryDraft) -> RegistryEntry:
        self.created.append(draft)
        if draft.domain in self.create_errors:
            raise self.create_errors[draft.domain]
        owner = self._owner_of(draft.tax_id)
        if owner is not None:
            raise RegistryConflict(
                ConflictDetails(
                    existing_id=owner.id,
                    existing_name=owner.name,
                    existing_domains=owner.domains,
                    existing_emails=owner.emails,
                )
            )
        entry = RegistryEntry(
            id=next(self._ids),
            name=draft.name,
            tax_id=draft.tax_id,
            domains=(draft.domain,) if draft.domain else (),
            emails=(draft.email,) if draft.email else (),
            data_status=draft.data_status,
        )
        self.entries[entry.id] = entry
        return entry

    def update(self, entry_id: int, draft: RegistryDraft) -> RegistryEntry:
        self.updated.append((entry_id, draft))
        owner = self._owner_of(draft.tax_id, exclude=entry_id)
        if owner is not None:
            raise RegistryConflict(ConflictDetails(existing_id=owner.id, existing_name=owner.name))
        entry = RegistryEntry(id=entry_id, name=draft.name, tax_id=draft.tax_id)
        self.entries[entry_id] = entry
        return entry

    def attach_domain(self, entry_id: int, domain: str, email: str | None = None) -> None:
        self.attached.append((entry_id, domain, email))


@dataclass
class FakeProfiles:
    profiles: dict[str, CompanyProfile] = field(default_factory=dict)
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    def fetch_profile(self, tax_id: str) -> CompanyProfile | None:
        self.calls.append(tax_id)
        if self.error is not None:
            raise self.error
        return self.profiles.get(tax_id)


class ManualClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
