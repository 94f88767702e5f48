"""identity and disclosure audit schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "names",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("name_text", sa.String(length=255), nullable=False),
        sa.Column("name_type", sa.String(length=16), nullable=False),
        sa.Column("is_preferred", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("length(name_text) > 0", name="ck_names_name_not_empty"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_names_user_id", "names", ["user_id"], unique=False)
    op.create_index(
        "uq_names_one_preferred_per_user",
        "names",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_preferred = true"),
    )

    op.create_table(
        "user_contexts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("context_name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "context_name", name="uq_user_contexts_user_name"),
    )
    op.create_index("ix_user_contexts_user_id", "user_contexts", ["user_id"], unique=False)

    op.create_table(
        "context_name_assignments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("context_id", sa.String(length=36), nullable=False),
        sa.Column("name_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["context_id"], ["user_contexts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["name_id"], ["names.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("context_id"),
    )
    op.create_index(
        "ix_context_name_assignments_user_id",
        "context_name_assignments",
        ["user_id"],
        unique=False,
    )
    op.create_index(
        "ix_context_name_assignments_name_id",
        "context_name_assignments",
        ["name_id"],
        unique=False,
    )

    op.create_table(
        "consents",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("granter_user_id", sa.String(length=36), nullable=False),
        sa.Column("requester_user_id", sa.String(length=36), nullable=False),
        sa.Column("context_id", sa.String(length=36), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("granted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["context_id"], ["user_contexts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("granter_user_id", "requester_user_id", name="uq_consents_granter_requester"),
    )
    op.create_index("ix_consents_granter_user_id", "consents", ["granter_user_id"], unique=False)
    op.create_index("ix_consents_requester_user_id", "consents", ["requester_user_id"], unique=False)

    op.create_table(
        "audit_log_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("target_user_id", sa.String(length=36), nullable=False),
        sa.Column("requester_user_id", sa.String(length=36), nullable=True),
        sa.Column("context_id", sa.String(length=36), nullable=True),
        sa.Column("resolved_name_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("accessed_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_entries_target_user_id", "audit_log_entries", ["target_user_id"], unique=False)
    op.create_index("ix_audit_log_entries_accessed_at", "audit_log_entries", ["accessed_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_log_entries_accessed_at", table_name="audit_log_entries")
    op.drop_index("ix_audit_log_entries_target_user_id", table_name="audit_log_entries")
    op.drop_table("audit_log_entries")

    op.drop_index("ix_consents_requester_user_id", table_name="consents")
    op.drop_index("ix_consents_granter_user_id", table_name="consents")
    op.drop_table("consents")

    op.drop_index("ix_context_name_assignments_name_id", table_name="context_name_assignments")
    op.drop_index("ix_context_name_assignments_user_id", table_name="context_name_assignments")
    op.drop_table("context_name_assignments")

    op.drop_index("ix_user_contexts_user_id", table_name="user_contexts")
    op.drop_table("user_contexts")

    op.drop_index("uq_names_one_preferred_per_user", table_name="names")
    op.drop_index("ix_names_user_id", table_name="names")
    op.drop_table("names")
