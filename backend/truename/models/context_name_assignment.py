"""Context to name binding ORM model."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from truename.models.base import Base, CreatedAtMixin, IdMixin


class ContextNameAssignment(Base, IdMixin, CreatedAtMixin):
    """At most one name per context."""

    __tablename__ = "context_name_assignments"

    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    context_id: Mapped[str] = mapped_column(
        ForeignKey("user_contexts.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    name_id: Mapped[str] = mapped_column(
        ForeignKey("names.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
