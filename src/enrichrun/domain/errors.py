"""Error taxonomy for enrichment runs.

Component-local failures (a single poll, a single registry write) are absorbed by the
services and reported as counters or log entries. Only job start and registry snapshot
loads let these errors escape to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from enrichrun.domain.model import ConflictDetails


class EnrichmentError(Exception):
    """Base class for all enrichment run errors."""


class ValidationError(EnrichmentError, ValueError):
    """Input rejected before any remote call (empty domain list, malformed tax ID)."""


class TransientNetworkError(EnrichmentError):
    """Timeout or connection drop; the next scheduled attempt may succeed."""


class AuthExpired(EnrichmentError):
    """The backend rejected our credentials (401/403)."""

    def __init__(self, message: str = "Authentication expired", *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RegistryConflict(EnrichmentError):
    """The registry refused a write because the tax ID already belongs to another entry."""

    def __init__(self, conflict: ConflictDetails) -> None:
        super().__init__(
            f"Tax ID already registered to entry {conflict.existing_id}"
            + (f" ({conflict.existing_name})" if conflict.existing_name else "")
        )
        self.conflict = conflict


class ExtractionFailure(EnrichmentError):
    """Per-domain extraction error reported by the batch job."""

    def __init__(self, domain: str, reason: str) -> None:
        super().__init__(f"{domain}: {reason}")
        self.domain = domain
        self.reason = reason


class InvalidTransition(EnrichmentError):
    """A conflict resolution was requested from a state that does not allow it."""


class BackendAPIError(EnrichmentError):
    """The backend answered with an error status we have no specific handling for."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
