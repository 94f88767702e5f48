"""Name variant ORM model."""

from sqlalchemy import Boolean, CheckConstraint, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from truename.models.base import Base, CreatedAtMixin, IdMixin
from truename.resolution.types import NameCategory


class Name(Base, IdMixin, CreatedAtMixin):
    """One name variant owned by a user."""

    __tablename__ = "names"
    __table_args__ = (
        CheckConstraint("length(name_text) > 0", name="ck_names_name_not_empty"),
        # At most one preferred name per user.
        Index(
            "uq_names_one_preferred_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("is_preferred = true"),
            sqlite_where=text("is_preferred = 1"),
        ),
    )

    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    name_text: Mapped[str] = mapped_column(String(255), nullable=False)
    name_type: Mapped[str] = mapped_column(String(16), default=NameCategory.PREFERRED.value, nullable=False)
    is_preferred: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
