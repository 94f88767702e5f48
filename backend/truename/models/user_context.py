"""User-defined audience context ORM model."""

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from truename.models.base import Base, CreatedAtMixin, IdMixin


class UserContext(Base, IdMixin, CreatedAtMixin):
    """Audience label (e.g. "Work Colleagues") a name can be bound to."""

    __tablename__ = "user_contexts"
    __table_args__ = (UniqueConstraint("user_id", "context_name", name="uq_user_contexts_user_name"),)

    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    context_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
