"""Query services for the disclosure audit log."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from truename.models.audit_log_entry import AuditLogEntry
from truename.schemas.audit import AuditLogEntryRead, AuditLogPage


def list_audit_entries(
    db: Session,
    target_user_id: str,
    *,
    limit: int = 20,
    offset: int = 0,
) -> AuditLogPage:
    """Return one page of disclosures for a user, newest first."""

    total = db.scalar(
        select(func.count()).select_from(AuditLogEntry).where(AuditLogEntry.target_user_id == target_user_id)
    ) or 0
    stmt = (
        select(AuditLogEntry)
        .where(AuditLogEntry.target_user_id == target_user_id)
        .order_by(AuditLogEntry.accessed_at.desc(), AuditLogEntry.id.desc())
        .limit(limit)
        .offset(offset)
    )
    entries = [AuditLogEntryRead.model_validate(entry) for entry in db.scalars(stmt).all()]
    return AuditLogPage(
        entries=entries,
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(entries) < total,
    )
