"""Enrichment results and the domain groups they are produced for."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from enrichrun.domain.errors import ExtractionFailure


class DiscoverySource(StrEnum):
    GOOGLE = "google"
    YANDEX = "yandex"
    BOTH = "both"
    UNKNOWN = "unknown"


@dataclass(slots=True, frozen=True)
class SourceUrl:
    url: str
    source: DiscoverySource = DiscoverySource.UNKNOWN
    keyword: str | None = None


@dataclass(slots=True, frozen=True)
class DomainGroup:
    """Candidate URLs discovered upstream for one root domain."""

    domain: str
    urls: tuple[SourceUrl, ...] = ()

    @property
    def total_urls(self) -> int:
        return len(self.urls)

    @property
    def sources(self) -> frozenset[DiscoverySource]:
        return frozenset(url.source for url in self.urls)


@dataclass(slots=True, frozen=True)
class ExtractionLogEntry:
    """Outcome of inspecting a single URL."""

    url: str | None = None
    inn_found: str | None = None
    emails_found: tuple[str, ...] = ()
    error: str | None = None


@dataclass(slots=True, frozen=True)
class EnrichmentResult:
    """The current extraction outcome for one domain.

    A newer result for the same domain replaces this one wholesale; fields are never
    merged across results.
    """

    domain: str
    inn: str | None = None
    emails: tuple[str, ...] = ()
    source_urls: tuple[str, ...] = ()
    extraction_log: tuple[ExtractionLogEntry, ...] = field(default=())
    strategy_used: str | None = None
    strategy_time_ms: int | None = None
    error: str | None = None

    @property
    def has_tax_id(self) -> bool:
        return bool(self.inn and self.inn.strip())

    @property
    def has_email(self) -> bool:
        return any(email.strip() for email in self.emails)

    @property
    def primary_email(self) -> str | None:
        return next((email.strip() for email in self.emails if email.strip()), None)

    @property
    def qualifies(self) -> bool:
        """Whether the result can be promoted into the registry without review."""

        return self.error is None and self.has_tax_id and self.has_email

    def failure(self) -> ExtractionFailure | None:
        if self.error is None:
            return None
        return ExtractionFailure(self.domain, self.error)
