"""Consent grant ORM model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from truename.models.base import Base, CreatedAtMixin, IdMixin
from truename.resolution.types import ConsentStatus


class Consent(Base, IdMixin, CreatedAtMixin):
    """Time-bounded grant letting a requester see the granter's name for one context."""

    __tablename__ = "consents"
    __table_args__ = (
        UniqueConstraint("granter_user_id", "requester_user_id", name="uq_consents_granter_requester"),
    )

    granter_user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    requester_user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    context_id: Mapped[str] = mapped_column(
        ForeignKey("user_contexts.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(16), default=ConsentStatus.PENDING.value, nullable=False)
    granted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
