"""SQLAlchemy metadata registry import for Alembic."""

from truename.models import AuditLogEntry, Consent, ContextNameAssignment, Name, UserContext
from truename.models.base import Base

__all__ = ["Base", "Name", "UserContext", "ContextNameAssignment", "Consent", "AuditLogEntry"]
