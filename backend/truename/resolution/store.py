"""Collaborator interface consumed by the resolution engine."""

from __future__ import annotations

from typing import Protocol

from truename.resolution.types import (
    AuditEvent,
    ConsentRecord,
    ContextAssignmentRecord,
    Lookup,
    NameTextRecord,
    PreferredNameRecord,
)


class IdentityStore(Protocol):
    """Read-only identity lookups plus the audit sink.

    Lookups return ``Lookup`` values and report database errors through
    ``Lookup.failure`` rather than raising. ``insert_audit_event`` raises on
    failure; the audit dispatcher absorbs it.
    """

    async def get_active_consent(
        self,
        target_user_id: str,
        requester_user_id: str,
    ) -> Lookup[ConsentRecord]:
        """Return the granted, non-expired consent from target to requester."""

    async def get_context_assignment(
        self,
        user_id: str,
        context_name: str,
    ) -> Lookup[ContextAssignmentRecord]:
        """Return the name assigned to the user's named context."""

    async def get_preferred_name(self, user_id: str) -> Lookup[PreferredNameRecord]:
        """Return the user's designated default name."""

    async def get_name_text(self, name_id: str) -> Lookup[NameTextRecord]:
        """Return the literal text of a stored name."""

    async def insert_audit_event(self, event: AuditEvent) -> None:
        """Persist one disclosure record."""
