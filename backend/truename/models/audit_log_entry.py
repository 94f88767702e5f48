"""Disclosure audit log ORM model."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from truename.models.base import Base


class AuditLogEntry(Base):
    """Append-only record of one disclosure decision."""

    __tablename__ = "audit_log_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    target_user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    requester_user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    context_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    resolved_name_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    accessed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    details: Mapped[dict[str, object]] = mapped_column(JSON, default=dict, nullable=False)
