"""Pydantic models describing the admin backend payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _none_to_list(value: object) -> object:
    return [] if value is None else value


class BackendModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)


class ExtractionLogPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    inn_found: str | None = None
    emails_found: list[str] = Field(default_factory=list)
    error: str | None = None

    _normalize_lists = field_validator("emails_found", mode="before")(_none_to_list)


class ResultPayload(BackendModel):
    domain: str = ""
    inn: str | None = None
    emails: list[str] = Field(default_factory=list)
    source_urls: list[str] = Field(default_factory=list)
    extraction_log: list[ExtractionLogPayload] = Field(default_factory=list)
    strategy_used: str | None = None
    strategy_time_ms: int | None = None
    error: str | None = None

    _normalize_blank = field_validator("inn", "error", "strategy_used", mode="before")(
        _blank_to_none
    )
    _normalize_lists = field_validator(
        "emails", "source_urls", "extraction_log", mode="before"
    )(_none_to_list)


class StartBatchRequest(BackendModel):
    run_id: str
    domains: list[str]
    force: bool = False


class StartBatchResponse(BackendModel):
    run_id: str | None = None
    parser_run_id: str


class JobStatusResponse(BackendModel):
    run_id: str | None = None
    parser_run_id: str
    status: str = "running"
    processed: int = 0
    total: int = 0
    current_domain: str | None = None
    current_source_urls: list[str] = Field(default_factory=list)
    results: list[ResultPayload] = Field(default_factory=list)

    _normalize_lists = field_validator("current_source_urls", "results", mode="before")(
        _none_to_list
    )


class CurrentRunPayload(BackendModel):
    parser_run_id: str
    run_id: str
    keyword: str | None = None
    processed: int = 0
    total: int = 0
    current_domain: str | None = None
    current_source_urls: list[str] = Field(default_factory=list)
    started_at: datetime | None = None

    _normalize_keyword = field_validator("keyword", mode="before")(_blank_to_none)
    _normalize_lists = field_validator("current_source_urls", mode="before")(_none_to_list)


class WorkerStatusResponse(BackendModel):
    paused: bool = False
    current_run: CurrentRunPayload | None = None


class WorkerToggleResponse(BackendModel):
    paused: bool
    message: str | None = None


class JobLogPayload(BackendModel):
    status: str | None = None
    processed: int = 0
    total: int = 0
    results: list[ResultPayload] = Field(default_factory=list)

    _normalize_lists = field_validator("results", mode="before")(_none_to_list)


class DomainParserLogPayload(BackendModel):
    runs: dict[str, JobLogPayload] = Field(default_factory=dict)


class AutoLogPayload(BackendModel):
    status: str | None = None
    parser_run_id: str | None = None
    processed: int = 0
    total: int | None = None
    domains: int | None = None
    last_domain: str | None = None


class ProcessLogPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    domain_parser: DomainParserLogPayload | None = None
    domain_parser_auto: AutoLogPayload | None = None


class ParsingRunPayload(BackendModel):
    run_id: str = Field(validation_alias=AliasChoices("runId", "run_id"))
    keyword: str | None = None
    created_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("createdAt", "created_at")
    )
    domain_parser_queue_run_domains: int | None = None
    process_log: ProcessLogPayload | None = Field(
        default=None, validation_alias=AliasChoices("processLog", "process_log")
    )


class ParsingRunListResponse(BackendModel):
    runs: list[ParsingRunPayload] = Field(default_factory=list)
    total: int = 0


class CompanyProfileFields(BackendModel):
    """Legal data fields shared by the profile lookup and supplier reads and writes."""

    ogrn: str | None = None
    kpp: str | None = None
    okpo: str | None = None
    company_status: str | None = None
    registration_date: str | None = None
    legal_address: str | None = None
    phone: str | None = None
    website: str | None = None
    vk: str | None = None
    telegram: str | None = None
    authorized_capital: float | None = None
    revenue: float | None = None
    profit: float | None = None
    finance_year: int | None = None
    legal_cases_count: int | None = None
    legal_cases_sum: float | None = None
    legal_cases_as_plaintiff: int | None = None
    legal_cases_as_defendant: int | None = None
    checko_data: str | None = None


class SupplierPayload(CompanyProfileFields):
    id: int
    name: str
    inn: str | None = None
    email: str | None = None
    domain: str | None = None
    domains: list[str] = Field(default_factory=list)
    emails: list[str] = Field(default_factory=list)
    type: str = "supplier"
    data_status: str | None = None

    _normalize_blank = field_validator("inn", "email", "domain", mode="before")(_blank_to_none)
    _normalize_lists = field_validator("domains", "emails", mode="before")(_none_to_list)


class SupplierListResponse(BackendModel):
    suppliers: list[SupplierPayload] = Field(default_factory=list)
    total: int = 0


class CompanyProfileResponse(CompanyProfileFields):
    name: str | None = None


class SupplierWriteRequest(CompanyProfileFields):
    name: str
    inn: str | None = None
    email: str | None = None
    domain: str | None = None
    address: str | None = None
    type: str = "supplier"
    data_status: str | None = None


class AttachDomainRequest(BackendModel):
    domain: str
    email: str | None = None


class ConflictDetailPayload(BackendModel):
    code: str | None = None
    existing_supplier_id: int | None = None
    existing_supplier_name: str | None = None
    existing_supplier_domains: list[str] = Field(default_factory=list)
    existing_supplier_emails: list[str] = Field(default_factory=list)

    _normalize_lists = field_validator(
        "existing_supplier_domains", "existing_supplier_emails", mode="before"
    )(_none_to_list)


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    detail: ConflictDetailPayload | str | list[object] | None = None
