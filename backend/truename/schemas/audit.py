"""Audit log response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AuditLogEntryRead(BaseModel):
    """Serialized audit log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    target_user_id: str
    requester_user_id: str | None
    context_id: str | None
    resolved_name_id: str | None
    action: str
    accessed_at: datetime
    details: dict[str, object]


class AuditLogPage(BaseModel):
    entries: list[AuditLogEntryRead]
    total: int
    limit: int
    offset: int
    has_more: bool
