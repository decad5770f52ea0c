"""Registry entries, drafts for new entries and tax ID conflicts."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

# Column limits enforced by the registry's storage.
COMPANY_STATUS_MAX_LENGTH = 50
PHONE_MAX_LENGTH = 50


class EntryKind(StrEnum):
    SUPPLIER = "supplier"
    RESELLER = "reseller"


class DataStatus(StrEnum):
    COMPLETE = "complete"
    NEEDS_PROFILE = "needs_checko"


@dataclass(slots=True, frozen=True)
class CompanyProfile:
    """Legal data about a company, looked up by tax ID."""

    name: str | None = None
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
    raw: str | None = None

    def clipped(self) -> CompanyProfile:
        """Return a copy that fits the registry's column limits."""

        return replace(
            self,
            company_status=_clip(self.company_status, COMPANY_STATUS_MAX_LENGTH),
            phone=_clip(self.phone, PHONE_MAX_LENGTH),
        )


def _clip(value: str | None, limit: int) -> str | None:
    if value is None:
        return None
    return value[:limit]


@dataclass(slots=True, frozen=True)
class RegistryEntry:
    id: int
    name: str
    tax_id: str | None = None
    domains: tuple[str, ...] = ()
    emails: tuple[str, ...] = ()
    kind: EntryKind = EntryKind.SUPPLIER
    data_status: DataStatus | None = None
    metadata: Mapping[str, object] = field(default_factory=dict[str, object])


@dataclass(slots=True, frozen=True)
class RegistryDraft:
    """Attributes for a registry create, or for overwriting an existing entry."""

    name: str
    tax_id: str | None = None
    domain: str | None = None
    email: str | None = None
    address: str | None = None
    kind: EntryKind = EntryKind.SUPPLIER
    profile: CompanyProfile | None = None

    @property
    def data_status(self) -> DataStatus:
        return DataStatus.COMPLETE if self.profile is not None else DataStatus.NEEDS_PROFILE


@dataclass(slots=True, frozen=True)
class ConflictDetails:
    """The entry that already owns a tax ID, as reported by the registry."""

    existing_id: int
    existing_name: str | None = None
    existing_domains: tuple[str, ...] = ()
    existing_emails: tuple[str, ...] = ()


@dataclass(slots=True)
class RegistrySnapshot:
    """In-memory index of registry entries by tax ID and by normalized domain.

    Keys are expected to be normalized by the caller; the snapshot does not
    normalize on its own so that it stays free of the public suffix lookup.
    """

    by_tax_id: dict[str, int] = field(default_factory=dict[str, int])
    by_domain: dict[str, int] = field(default_factory=dict[str, int])

    def contains_domain(self, domain: str) -> bool:
        return domain in self.by_domain

    def id_for_tax_id(self, tax_id: str) -> int | None:
        return self.by_tax_id.get(tax_id)

    def record(self, entry_id: int, *, tax_id: str | None, domain: str | None) -> None:
        if tax_id:
            self.by_tax_id.setdefault(tax_id, entry_id)
        if domain:
            self.by_domain.setdefault(domain, entry_id)
