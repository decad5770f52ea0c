"""Adapters for the supplier registry and the company profile lookup."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from enrichrun.domain.errors import BackendAPIError
from enrichrun.domain.normalization import require_tax_id

from .client import BackendClient, default_client_factory
from .schema import (
    AttachDomainRequest,
    CompanyProfileResponse,
    SupplierListResponse,
    SupplierPayload,
)
from .translator import draft_to_request, translate_profile, translate_supplier

if TYPE_CHECKING:
    from enrichrun.config.backend import BackendConfig
    from enrichrun.domain.model import CompanyProfile, RegistryDraft, RegistryEntry
    from enrichrun.domain.ports import CompanyProfileLookup, Registry

    from .client import ClientFactory

log = getLogger(__name__)


def _supplier(payload: object) -> RegistryEntry:
    try:
        return translate_supplier(SupplierPayload.model_validate(payload))
    except PydanticValidationError as exc:
        raise BackendAPIError("Unexpected supplier payload") from exc


class HttpRegistry(BackendClient):
    """``/moderator/suppliers`` CRUD. Writes are sent once and never retried."""

    def __init__(
        self,
        config: BackendConfig,
        *,
        client_factory: ClientFactory = default_client_factory,
    ) -> None:
        super().__init__(config, config.registry, client_factory=client_factory)

    def list_entries(self, limit: int) -> list[RegistryEntry]:
        payload = self._call("GET", "/moderator/suppliers", params={"limit": limit})
        try:
            listing = SupplierListResponse.model_validate(payload)
        except PydanticValidationError as exc:
            raise BackendAPIError("Unexpected supplier list payload") from exc
        if listing.total > len(listing.suppliers):
            log.warning(
                "Registry snapshot truncated to %d of %d entries",
                len(listing.suppliers),
                listing.total,
            )
        return [translate_supplier(item) for item in listing.suppliers]

    def create(self, draft: RegistryDraft) -> RegistryEntry:
        body = draft_to_request(draft).model_dump(by_alias=True, exclude_none=True)
        return _supplier(self._call("POST", "/moderator/suppliers", json=body))

    def update(self, entry_id: int, draft: RegistryDraft) -> RegistryEntry:
        body = draft_to_request(draft).model_dump(by_alias=True, exclude_none=True)
        return _supplier(self._call("PUT", f"/moderator/suppliers/{entry_id}", json=body))

    def attach_domain(self, entry_id: int, domain: str, email: str | None = None) -> None:
        body = AttachDomainRequest(domain=domain, email=email).model_dump(exclude_none=True)
        self._call("POST", f"/moderator/suppliers/{entry_id}/attach-domain", json=body)


class HttpCompanyProfileLookup(BackendClient):
    """Read-only ``/moderator/checko/{inn}`` lookups, cached on disk."""

    def __init__(
        self,
        config: BackendConfig,
        *,
        client_factory: ClientFactory = default_client_factory,
    ) -> None:
        super().__init__(config, config.profiles, client_factory=client_factory)

    def fetch_profile(self, tax_id: str) -> CompanyProfile | None:
        inn = require_tax_id(tax_id)
        payload = self._call("GET", f"/moderator/checko/{inn}")
        if payload is None:
            return None
        try:
            profile = CompanyProfileResponse.model_validate(payload)
        except PydanticValidationError as exc:
            raise BackendAPIError("Unexpected company profile payload") from exc
        if not profile.checko_data and profile.name is None:
            log.debug("No company profile for tax ID %s", inn)
            return None
        return translate_profile(profile)


__all__ = ["HttpCompanyProfileLookup", "HttpRegistry"]

if TYPE_CHECKING:
    _registry_check: Registry = HttpRegistry.__new__(HttpRegistry)
    _profiles_check: CompanyProfileLookup = HttpCompanyProfileLookup.__new__(
        HttpCompanyProfileLookup
    )
