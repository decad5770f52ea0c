"""Translate admin backend payloads into domain objects and back."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from enrichrun.domain.model import (
    ActiveRun,
    AutoJobProgress,
    CompanyProfile,
    ConflictDetails,
    DataStatus,
    EnrichmentResult,
    EntryKind,
    ExtractionLogEntry,
    JobRecord,
    PendingRun,
    RegistryEntry,
    RunProcessLog,
    RunSnapshot,
    RunStatus,
    WorkerState,
)

from .schema import CompanyProfileFields, SupplierWriteRequest

if TYPE_CHECKING:
    from enrichrun.domain.model import RegistryDraft

    from .schema import (
        CompanyProfileResponse,
        ConflictDetailPayload,
        JobStatusResponse,
        ParsingRunPayload,
        ResultPayload,
        SupplierPayload,
        WorkerStatusResponse,
    )

log = getLogger(__name__)

_STATUS_ALIASES: dict[str, RunStatus] = {
    "queued": RunStatus.QUEUED,
    "pending": RunStatus.QUEUED,
    "running": RunStatus.RUNNING,
    "processing": RunStatus.RUNNING,
    "completed": RunStatus.COMPLETED,
    "done": RunStatus.COMPLETED,
    "finished": RunStatus.COMPLETED,
    "failed": RunStatus.FAILED,
    "error": RunStatus.FAILED,
    "cancelled": RunStatus.FAILED,
}

_EPOCH = datetime.min.replace(tzinfo=UTC)
_PROFILE_FIELDS = set(CompanyProfileFields.model_fields)


def translate_status(raw: str | None, *, default: RunStatus = RunStatus.RUNNING) -> RunStatus:
    if raw is None:
        return default
    status = _STATUS_ALIASES.get(raw.strip().lower())
    if status is None:
        log.debug("Unknown job status %r, treating as %s", raw, default)
        return default
    return status


def _aware(value: datetime | None) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def translate_result(payload: ResultPayload) -> EnrichmentResult:
    return EnrichmentResult(
        domain=payload.domain.strip(),
        inn=payload.inn,
        emails=tuple(email.strip() for email in payload.emails if email and email.strip()),
        source_urls=tuple(payload.source_urls),
        extraction_log=tuple(
            ExtractionLogEntry(
                url=entry.url,
                inn_found=entry.inn_found,
                emails_found=tuple(entry.emails_found),
                error=entry.error,
            )
            for entry in payload.extraction_log
        ),
        strategy_used=payload.strategy_used,
        strategy_time_ms=payload.strategy_time_ms,
        error=payload.error,
    )


def translate_job_status(payload: JobStatusResponse) -> RunSnapshot:
    return RunSnapshot(
        job_handle=payload.parser_run_id,
        status=translate_status(payload.status),
        run_id=payload.run_id,
        processed=max(payload.processed, 0),
        total=max(payload.total, 0),
        current_domain=payload.current_domain,
        current_source_urls=tuple(payload.current_source_urls),
        results=tuple(translate_result(item) for item in payload.results),
    )


def translate_worker_status(payload: WorkerStatusResponse) -> WorkerState:
    current = payload.current_run
    if current is None:
        return WorkerState(paused=payload.paused)
    return WorkerState(
        paused=payload.paused,
        active=ActiveRun(
            job_handle=current.parser_run_id,
            run_id=current.run_id,
            processed=current.processed,
            total=current.total,
            current_domain=current.current_domain,
            current_source_urls=tuple(current.current_source_urls),
            keyword=current.keyword,
            started_at=current.started_at,
        ),
    )


def translate_process_log(payload: ParsingRunPayload) -> RunProcessLog:
    """Job records come back ordered by handle, which sorts them oldest first."""

    process_log = payload.process_log
    if process_log is None:
        return RunProcessLog(run_id=payload.run_id)

    jobs: list[JobRecord] = []
    if process_log.domain_parser is not None:
        for handle in sorted(process_log.domain_parser.runs):
            job = process_log.domain_parser.runs[handle]
            results = tuple(translate_result(item) for item in job.results)
            jobs.append(
                JobRecord(
                    job_handle=handle,
                    status=translate_status(job.status, default=RunStatus.COMPLETED),
                    processed=job.processed or len(results),
                    total=job.total or len(results),
                    results=results,
                )
            )

    auto: AutoJobProgress | None = None
    auto_payload = process_log.domain_parser_auto
    if auto_payload is not None and auto_payload.parser_run_id:
        auto = AutoJobProgress(
            job_handle=auto_payload.parser_run_id,
            status=translate_status(auto_payload.status),
            processed=auto_payload.processed,
            total=auto_payload.total or auto_payload.domains or 0,
            last_domain=auto_payload.last_domain,
        )

    return RunProcessLog(run_id=payload.run_id, jobs=tuple(jobs), auto=auto)


def translate_pending_run(payload: ParsingRunPayload) -> PendingRun | None:
    remaining = payload.domain_parser_queue_run_domains
    if not remaining:
        return None
    return PendingRun(
        run_id=payload.run_id,
        created_at=_aware(payload.created_at),
        remaining_domains=remaining,
        keyword=payload.keyword,
    )


def translate_supplier(payload: SupplierPayload) -> RegistryEntry:
    domains = list(payload.domains)
    if payload.domain and payload.domain not in domains:
        domains.insert(0, payload.domain)
    emails = list(payload.emails)
    if payload.email and payload.email not in emails:
        emails.insert(0, payload.email)
    try:
        kind = EntryKind(payload.type)
    except ValueError:
        kind = EntryKind.SUPPLIER
    try:
        data_status = DataStatus(payload.data_status) if payload.data_status else None
    except ValueError:
        data_status = None
    return RegistryEntry(
        id=payload.id,
        name=payload.name,
        tax_id=payload.inn,
        domains=tuple(domains),
        emails=tuple(emails),
        kind=kind,
        data_status=data_status,
        metadata=payload.model_dump(include=_PROFILE_FIELDS, exclude_none=True),
    )


def translate_profile(payload: CompanyProfileResponse) -> CompanyProfile:
    return CompanyProfile(
        name=payload.name,
        ogrn=payload.ogrn,
        kpp=payload.kpp,
        okpo=payload.okpo,
        company_status=payload.company_status,
        registration_date=payload.registration_date,
        legal_address=payload.legal_address,
        phone=payload.phone,
        website=payload.website,
        vk=payload.vk,
        telegram=payload.telegram,
        authorized_capital=payload.authorized_capital,
        revenue=payload.revenue,
        profit=payload.profit,
        finance_year=payload.finance_year,
        legal_cases_count=payload.legal_cases_count,
        legal_cases_sum=payload.legal_cases_sum,
        legal_cases_as_plaintiff=payload.legal_cases_as_plaintiff,
        legal_cases_as_defendant=payload.legal_cases_as_defendant,
        raw=payload.checko_data,
    )


def translate_conflict(payload: ConflictDetailPayload) -> ConflictDetails | None:
    if payload.code != "inn_conflict" or payload.existing_supplier_id is None:
        return None
    return ConflictDetails(
        existing_id=payload.existing_supplier_id,
        existing_name=payload.existing_supplier_name,
        existing_domains=tuple(payload.existing_supplier_domains),
        existing_emails=tuple(payload.existing_supplier_emails),
    )


def draft_to_request(draft: RegistryDraft) -> SupplierWriteRequest:
    profile = draft.profile or CompanyProfile()
    return SupplierWriteRequest(
        name=draft.name,
        inn=draft.tax_id,
        email=draft.email,
        domain=draft.domain,
        address=draft.address,
        type=draft.kind.value,
        data_status=draft.data_status.value,
        ogrn=profile.ogrn,
        kpp=profile.kpp,
        okpo=profile.okpo,
        company_status=profile.company_status,
        registration_date=profile.registration_date,
        legal_address=profile.legal_address,
        phone=profile.phone,
        website=profile.website,
        vk=profile.vk,
        telegram=profile.telegram,
        authorized_capital=profile.authorized_capital,
        revenue=profile.revenue,
        profit=profile.profit,
        finance_year=profile.finance_year,
        legal_cases_count=profile.legal_cases_count,
        legal_cases_sum=profile.legal_cases_sum,
        legal_cases_as_plaintiff=profile.legal_cases_as_plaintiff,
        legal_cases_as_defendant=profile.legal_cases_as_defendant,
        checko_data=profile.raw,
    )
