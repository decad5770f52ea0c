"""Ports for the supplier registry and the company profile lookup."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from enrichrun.domain.model import CompanyProfile, RegistryDraft, RegistryEntry


@runtime_checkable
class Registry(Protocol):
    """Registry CRUD contract.

    ``create`` and ``update`` raise ``RegistryConflict`` when the tax ID already
    belongs to another entry.
    """

    def list_entries(self, limit: int) -> list[RegistryEntry]: ...

    def create(self, draft: RegistryDraft) -> RegistryEntry: ...

    def update(self, entry_id: int, draft: RegistryDraft) -> RegistryEntry: ...

    def attach_domain(self, entry_id: int, domain: str, email: str | None = None) -> None: ...


@runtime_checkable
class CompanyProfileLookup(Protocol):
    def fetch_profile(self, tax_id: str) -> CompanyProfile | None: ...


__all__ = ["CompanyProfileLookup", "Registry"]
