"""Promote qualifying enrichment results into the supplier registry.

The bulk pass runs at most once per (run id, job handle). Individual domains never
abort it: each one ends up saved, skipped or failed, and the caller gets the tally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from enrichrun.config.polling import DEFAULT_REGISTRY_SNAPSHOT_LIMIT
from enrichrun.domain.errors import AuthExpired, EnrichmentError, RegistryConflict
from enrichrun.domain.merging import distinct_results
from enrichrun.domain.model import RegistryDraft, RegistrySnapshot, RunStatus
from enrichrun.domain.normalization import is_valid_tax_id, normalize_domain

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from enrichrun.domain.model import CompanyProfile, EnrichmentResult, RegistryEntry
    from enrichrun.domain.ports import CommitLedger, CompanyProfileLookup, Registry

log = getLogger(__name__)


class OutcomeKind(StrEnum):
    SAVED = "saved"
    SKIPPED_EXISTS = "skipped_exists"
    SKIPPED_CONFLICT = "skipped_conflict"
    SKIPPED_INCOMPLETE = "skipped_incomplete"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class CommitOutcome:
    domain: str
    kind: OutcomeKind
    entry_id: int | None = None
    detail: str | None = None


@dataclass(slots=True)
class CommitSummary:
    """Breakdown of one bulk pass. A pass with skips is still a success."""

    run_id: str
    job_handle: str
    saved: int = 0
    skipped_exists: int = 0
    skipped_conflict: int = 0
    skipped_incomplete: int = 0
    failed: int = 0
    already_processed: bool = False
    auth_expired: bool = False
    outcomes: list[CommitOutcome] = field(default_factory=list[CommitOutcome])

    @property
    def skipped(self) -> int:
        return self.skipped_exists + self.skipped_conflict + self.skipped_incomplete

    def add(self, outcome: CommitOutcome) -> None:
        self.outcomes.append(outcome)
        match outcome.kind:
            case OutcomeKind.SAVED:
                self.saved += 1
            case OutcomeKind.SKIPPED_EXISTS:
                self.skipped_exists += 1
            case OutcomeKind.SKIPPED_CONFLICT:
                self.skipped_conflict += 1
            case OutcomeKind.SKIPPED_INCOMPLETE:
                self.skipped_incomplete += 1
            case OutcomeKind.FAILED:
                self.failed += 1


def build_registry_snapshot(entries: Iterable[RegistryEntry]) -> RegistrySnapshot:
    snapshot = RegistrySnapshot()
    for entry in entries:
        snapshot.record(entry.id, tax_id=entry.tax_id, domain=None)
        for domain in entry.domains:
            snapshot.record(entry.id, tax_id=None, domain=normalize_domain(domain))
    return snapshot


def draft_from_result(result: EnrichmentResult, profile: CompanyProfile | None) -> RegistryDraft:
    """Build the create payload; the root domain stands in for a missing company name."""

    root = normalize_domain(result.domain)
    clipped = profile.clipped() if profile is not None else None
    name = (clipped.name if clipped is not None else None) or root
    return RegistryDraft(
        name=name,
        tax_id=(result.inn or "").strip() or None,
        domain=root,
        email=result.primary_email,
        address=clipped.legal_address if clipped is not None else None,
        profile=clipped,
    )


class AutoCommitter:
    def __init__(
        self,
        registry: Registry,
        profiles: CompanyProfileLookup | None,
        ledger: CommitLedger,
        *,
        snapshot_limit: int = DEFAULT_REGISTRY_SNAPSHOT_LIMIT,
    ) -> None:
        self._registry = registry
        self._profiles = profiles
        self._ledger = ledger
        self._snapshot_limit = snapshot_limit

    def commit(
        self,
        run_id: str,
        job_handle: str,
        status: RunStatus,
        results: Mapping[str, EnrichmentResult],
    ) -> CommitSummary | None:
        """Run the bulk pass for a completed job.

        Returns ``None`` when there is nothing to do yet. Raises only when the registry
        snapshot cannot be loaded for a reason other than expired credentials.
        """

        if status is not RunStatus.COMPLETED or not results:
            return None

        summary = CommitSummary(run_id=run_id, job_handle=job_handle)
        if not self._ledger.claim(run_id, job_handle):
            log.info("Run %s job %s already committed", run_id, job_handle)
            summary.already_processed = True
            return summary

        try:
            snapshot = build_registry_snapshot(self._registry.list_entries(self._snapshot_limit))
        except AuthExpired:
            self._ledger.release(run_id, job_handle)
            log.info("Registry session expired; commit for run %s will retry after login", run_id)
            summary.auth_expired = True
            return summary

        attempted: dict[str, OutcomeKind] = {}
        for result in distinct_results(results):
            summary.add(self._commit_one(result, snapshot, attempted))

        log.info(
            "Committed run %s: %d saved, %d skipped, %d failed",
            run_id,
            summary.saved,
            summary.skipped,
            summary.failed,
        )
        return summary

    def _commit_one(
        self,
        result: EnrichmentResult,
        snapshot: RegistrySnapshot,
        attempted: dict[str, OutcomeKind],
    ) -> CommitOutcome:
        root = normalize_domain(result.domain)
        if not result.qualifies or not is_valid_tax_id(result.inn):
            return CommitOutcome(root, OutcomeKind.SKIPPED_INCOMPLETE)
        if snapshot.contains_domain(root):
            return CommitOutcome(root, OutcomeKind.SKIPPED_EXISTS, snapshot.by_domain[root])

        tax_id = (result.inn or "").strip()
        previous = attempted.get(tax_id)
        if previous is not None:
            kind = OutcomeKind.SKIPPED_EXISTS if previous is OutcomeKind.SAVED else previous
            return CommitOutcome(root, kind, snapshot.id_for_tax_id(tax_id))

        draft = draft_from_result(result, self._lookup_profile(tax_id))

        try:
            entry = self._registry.create(draft)
        except RegistryConflict as exc:
            existing = exc.conflict.existing_id
            snapshot.record(existing, tax_id=tax_id, domain=root)
            attempted[tax_id] = OutcomeKind.SKIPPED_CONFLICT
            log.info("Skipped %s: tax ID %s belongs to entry %s", root, tax_id, existing)
            return CommitOutcome(root, OutcomeKind.SKIPPED_CONFLICT, existing)
        except EnrichmentError as exc:
            attempted[tax_id] = OutcomeKind.FAILED
            log.warning("Failed to create registry entry for %s: %s", root, exc)
            return CommitOutcome(root, OutcomeKind.FAILED, detail=str(exc))
        except Exception as exc:
            attempted[tax_id] = OutcomeKind.FAILED
            log.exception("Unexpected error creating registry entry for %s", root)
            return CommitOutcome(root, OutcomeKind.FAILED, detail=repr(exc))

        snapshot.record(entry.id, tax_id=tax_id, domain=root)
        attempted[tax_id] = OutcomeKind.SAVED
        return CommitOutcome(root, OutcomeKind.SAVED, entry.id)

    def _lookup_profile(self, tax_id: str) -> CompanyProfile | None:
        if self._profiles is None:
            return None
        try:
            return self._profiles.fetch_profile(tax_id)
        except EnrichmentError as exc:
            log.info("Company profile unavailable for tax ID %s: %s", tax_id, exc)
            return None
        except Exception:
            log.exception("Company profile lookup failed for tax ID %s", tax_id)
            return None
