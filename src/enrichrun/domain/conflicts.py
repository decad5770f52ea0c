"""Interactive create/update of a single registry entry, with tax ID conflict handling."""

from __future__ import annotations

from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from enrichrun.domain.errors import InvalidTransition, RegistryConflict, ValidationError

if TYPE_CHECKING:
    from enrichrun.domain.model import ConflictDetails, RegistryDraft, RegistryEntry
    from enrichrun.domain.ports import Registry

log = getLogger(__name__)


class ResolverState(StrEnum):
    IDLE = "idle"
    CONFLICT_DETECTED = "conflict_detected"
    ATTACH_DOMAIN = "attach_domain"
    UPDATE_EXISTING = "update_existing"
    CANCELLED = "cancelled"


class ConflictResolver:
    """Drives ``IDLE -> CONFLICT_DETECTED -> {ATTACH_DOMAIN, UPDATE_EXISTING, CANCELLED} -> IDLE``.

    ``save`` is the only way into ``CONFLICT_DETECTED``. Every resolution lands back in
    ``IDLE``, including when the registry call it makes fails.
    """

    def __init__(self, registry: Registry) -> None:
        self._registry = registry
        self._state = ResolverState.IDLE
        self._draft: RegistryDraft | None = None
        self._conflict: ConflictDetails | None = None
        self.last_resolution: ResolverState | None = None

    @property
    def state(self) -> ResolverState:
        return self._state

    @property
    def conflict(self) -> ConflictDetails | None:
        return self._conflict

    @property
    def pending_draft(self) -> RegistryDraft | None:
        return self._draft

    def save(self, draft: RegistryDraft, entry_id: int | None = None) -> RegistryEntry | None:
        """Create ``draft`` (or update ``entry_id`` with it).

        Returns ``None`` when the registry reports a tax ID conflict; the conflict is
        then available on :attr:`conflict` until it is resolved.
        """

        if self._state is not ResolverState.IDLE:
            raise InvalidTransition(f"Cannot save while {self._state}")
        try:
            if entry_id is None:
                return self._registry.create(draft)
            return self._registry.update(entry_id, draft)
        except RegistryConflict as exc:
            log.info("Registry conflict: %s", exc)
            self._state = ResolverState.CONFLICT_DETECTED
            self._draft = draft
            self._conflict = exc.conflict
            return None

    def attach_domain(self) -> None:
        """Add the attempted domain and email to the entry that owns the tax ID."""

        conflict, draft = self._begin(ResolverState.ATTACH_DOMAIN)
        try:
            if not draft.domain:
                raise ValidationError("Nothing to attach: the draft has no domain")
            self._registry.attach_domain(conflict.existing_id, draft.domain, draft.email)
        finally:
            self._finish()

    def update_existing(self) -> RegistryEntry:
        """Write the attempted attributes over the entry that owns the tax ID."""

        conflict, draft = self._begin(ResolverState.UPDATE_EXISTING)
        try:
            return self._registry.update(conflict.existing_id, draft)
        finally:
            self._finish()

    def cancel(self) -> None:
        self._begin(ResolverState.CANCELLED)
        self._finish()

    def _begin(self, target: ResolverState) -> tuple[ConflictDetails, RegistryDraft]:
        if (
            self._state is not ResolverState.CONFLICT_DETECTED
            or self._conflict is None
            or self._draft is None
        ):
            raise InvalidTransition(f"Cannot move from {self._state} to {target}")
        self._state = target
        return self._conflict, self._draft

    def _finish(self) -> None:
        self.last_resolution = self._state
        self._state = ResolverState.IDLE
        self._draft = None
        self._conflict = None
