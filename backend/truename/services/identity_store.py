"""SQLAlchemy-backed identity lookups and audit sink.

Queries are plain synchronous SQLAlchemy; the async ``SqlIdentityStore``
methods run each one in a worker thread with its own short-lived session.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TypeVar

from sqlalchemy import case, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from truename.models.audit_log_entry import AuditLogEntry
from truename.models.consent import Consent
from truename.models.context_name_assignment import ContextNameAssignment
from truename.models.name import Name
from truename.models.user_context import UserContext
from truename.resolution.types import (
    AuditEvent,
    ConsentRecord,
    ConsentStatus,
    ContextAssignmentRecord,
    Lookup,
    NameCategory,
    NameTextRecord,
    PreferredNameRecord,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

_NAME_CATEGORY_RANK = {
    NameCategory.LEGAL.value: 1,
    NameCategory.PREFERRED.value: 2,
    NameCategory.NICKNAME.value: 3,
    NameCategory.ALIAS.value: 4,
}


def select_active_consent(
    db: Session,
    target_user_id: str,
    requester_user_id: str,
    *,
    now: datetime | None = None,
) -> ConsentRecord | None:
    """Return the granted, unexpired consent from target to requester."""

    if not target_user_id or not requester_user_id:
        return None
    moment = now or datetime.now(timezone.utc)
    stmt = (
        select(
            Consent.context_id,
            UserContext.context_name,
            Consent.id,
            Consent.granted_at,
            Consent.expires_at,
        )
        .join(UserContext, UserContext.id == Consent.context_id)
        .where(
            Consent.granter_user_id == target_user_id,
            Consent.requester_user_id == requester_user_id,
            Consent.status == ConsentStatus.GRANTED.value,
            or_(Consent.expires_at.is_(None), Consent.expires_at > moment),
        )
        .limit(1)
    )
    row = db.execute(stmt).first()
    if row is None:
        return None
    context_id, context_name, consent_id, granted_at, expires_at = row
    return ConsentRecord(
        context_id=context_id,
        context_name=context_name,
        consent_id=consent_id,
        granted_at=granted_at,
        expires_at=expires_at,
    )


def select_context_assignment(db: Session, user_id: str, context_name: str) -> ContextAssignmentRecord | None:
    """Return the name the user bound to ``context_name``."""

    if not user_id or not context_name or not context_name.strip():
        return None
    stmt = (
        select(Name.id, Name.name_text, UserContext.id, UserContext.context_name, Name.name_type)
        .select_from(UserContext)
        .join(ContextNameAssignment, ContextNameAssignment.context_id == UserContext.id)
        .join(Name, Name.id == ContextNameAssignment.name_id)
        .where(
            UserContext.user_id == user_id,
            UserContext.context_name == context_name,
            ContextNameAssignment.user_id == user_id,
        )
        .limit(1)
    )
    row = db.execute(stmt).first()
    if row is None:
        return None
    name_id, name_text, context_id, resolved_context_name, name_type = row
    return ContextAssignmentRecord(
        name_id=name_id,
        name_text=name_text,
        context_id=context_id,
        context_name=resolved_context_name,
        name_type=name_type,
    )


def select_preferred_name(db: Session, user_id: str) -> PreferredNameRecord | None:
    """Return the preferred name, else the best-ranked name the user owns."""

    if not user_id:
        return None
    preferred = db.scalars(
        select(Name).where(Name.user_id == user_id, Name.is_preferred.is_(True)).limit(1)
    ).first()
    if preferred is None:
        category_rank = case(_NAME_CATEGORY_RANK, value=Name.name_type, else_=5)
        preferred = db.scalars(
            select(Name)
            .where(Name.user_id == user_id)
            .order_by(category_rank.asc(), Name.created_at.asc(), Name.id.asc())
            .limit(1)
        ).first()
    if preferred is None:
        return None
    return PreferredNameRecord(
        name_id=preferred.id,
        name_text=preferred.name_text,
        name_type=preferred.name_type,
        is_preferred=preferred.is_preferred,
    )


def select_name_text(db: Session, name_id: str) -> NameTextRecord | None:
    name_text = db.scalar(select(Name.name_text).where(Name.id == name_id))
    if name_text is None:
        return None
    return NameTextRecord(name_text=name_text)


def insert_audit_log_entry(db: Session, event: AuditEvent) -> AuditLogEntry:
    """Persist one disclosure audit row."""

    entry = AuditLogEntry(
        target_user_id=event.target_user_id,
        requester_user_id=event.requester_user_id,
        context_id=event.metadata.context_id,
        resolved_name_id=event.name_id,
        action=event.action.value,
        details=event.details(),
    )
    db.add(entry)
    db.commit()
    return entry


class SqlIdentityStore:
    """``IdentityStore`` over a SQLAlchemy session factory."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    async def get_active_consent(self, target_user_id: str, requester_user_id: str) -> Lookup[ConsentRecord]:
        return await asyncio.to_thread(
            self._lookup,
            "get_active_consent",
            lambda db: select_active_consent(db, target_user_id, requester_user_id),
        )

    async def get_context_assignment(self, user_id: str, context_name: str) -> Lookup[ContextAssignmentRecord]:
        return await asyncio.to_thread(
            self._lookup,
            "get_context_assignment",
            lambda db: select_context_assignment(db, user_id, context_name),
        )

    async def get_preferred_name(self, user_id: str) -> Lookup[PreferredNameRecord]:
        return await asyncio.to_thread(
            self._lookup,
            "get_preferred_name",
            lambda db: select_preferred_name(db, user_id),
        )

    async def get_name_text(self, name_id: str) -> Lookup[NameTextRecord]:
        return await asyncio.to_thread(
            self._lookup,
            "get_name_text",
            lambda db: select_name_text(db, name_id),
        )

    async def insert_audit_event(self, event: AuditEvent) -> None:
        await asyncio.to_thread(self._insert_audit_event, event)

    def _lookup(self, operation: str, query: Callable[[Session], R | None]) -> Lookup[R]:
        try:
            with self._session_factory() as db:
                record = query(db)
        except SQLAlchemyError as exc:
            logger.error("identity_store.lookup_failed operation=%s error=%s", operation, exc)
            return Lookup.failure(str(exc))
        if record is None:
            return Lookup.missing()
        return Lookup.found(record)

    def _insert_audit_event(self, event: AuditEvent) -> None:
        with self._session_factory() as db:
            insert_audit_log_entry(db, event)
