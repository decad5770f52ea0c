from __future__ import annotations

import pytest

from enrichrun.domain.conflicts import ConflictResolver, ResolverState
from enrichrun.domain.errors import BackendAPIError, InvalidTransition, ValidationError
from enrichrun.domain.model import RegistryDraft, RegistryEntry
from tests.helpers.enrichment import FakeRegistry

INN = "7701234567"


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry(
        [RegistryEntry(id=42, name="Acme", tax_id=INN, domains=("acme.ru",), emails=("a@acme.ru",))]
    )


def _conflicting_draft(domain: str | None = "acme-shop.ru") -> RegistryDraft:
    return RegistryDraft(name="Acme Shop", tax_id=INN, domain=domain, email="shop@acme.ru")


def test_save_without_conflict_stays_idle(registry: FakeRegistry) -> None:
    resolver = ConflictResolver(registry)

    entry = resolver.save(RegistryDraft(name="New", tax_id="7709876543", domain="new.ru"))

    assert entry is not None
    assert resolver.state is ResolverState.IDLE
    assert resolver.conflict is None


def test_conflict_exposes_existing_entry(registry: FakeRegistry) -> None:
    resolver = ConflictResolver(registry)

    assert resolver.save(_conflicting_draft()) is None

    assert resolver.state is ResolverState.CONFLICT_DETECTED
    assert resolver.conflict is not None
    assert resolver.conflict.existing_id == 42
    assert resolver.conflict.existing_domains == ("acme.ru",)


def test_attach_domain_resolution(registry: FakeRegistry) -> None:
    resolver = ConflictResolver(registry)
    resolver.save(_conflicting_draft())

    resolver.attach_domain()

    assert registry.attached == [(42, "acme-shop.ru", "shop@acme.ru")]
    assert resolver.state is ResolverState.IDLE
    assert resolver.last_resolution is ResolverState.ATTACH_DOMAIN


def test_update_existing_resolution(registry: FakeRegistry) -> None:
    resolver = ConflictResolver(registry)
    resolver.save(_conflicting_draft())

    entry = resolver.update_existing()

    assert entry.id == 42
    assert registry.updated[0][0] == 42
    assert resolver.state is ResolverState.IDLE


def test_cancel_discards(registry: FakeRegistry) -> None:
    resolver = ConflictResolver(registry)
    resolver.save(_conflicting_draft())

    resolver.cancel()

    assert resolver.state is ResolverState.IDLE
    assert resolver.pending_draft is None
    assert registry.attached == []
    assert registry.updated == []


def test_resolutions_from_idle_are_rejected(registry: FakeRegistry) -> None:
    resolver = ConflictResolver(registry)

    with pytest.raises(InvalidTransition):
        resolver.attach_domain()
    with pytest.raises(InvalidTransition):
        resolver.update_existing()
    with pytest.raises(InvalidTransition):
        resolver.cancel()


def test_save_while_conflicted_is_rejected(registry: FakeRegistry) -> None:
    resolver = ConflictResolver(registry)
    resolver.save(_conflicting_draft())

    with pytest.raises(InvalidTransition):
        resolver.save(_conflicting_draft())


def test_attach_without_domain_returns_to_idle(registry: FakeRegistry) -> None:
    resolver = ConflictResolver(registry)
    resolver.save(_conflicting_draft(domain=None))

    with pytest.raises(ValidationError):
        resolver.attach_domain()

    assert resolver.state is ResolverState.IDLE


def test_failed_registry_call_still_returns_to_idle(registry: FakeRegistry) -> None:
    def broken_attach(entry_id: int, domain: str, email: str | None = None) -> None:
        raise BackendAPIError("boom", status_code=418)

    registry.attach_domain = broken_attach  # type: ignore[method-assign]
    resolver = ConflictResolver(registry)
    resolver.save(_conflicting_draft())

    with pytest.raises(BackendAPIError):
        resolver.attach_domain()

    assert resolver.state is ResolverState.IDLE

