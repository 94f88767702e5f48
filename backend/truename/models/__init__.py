"""ORM models package exports."""

from truename.models.audit_log_entry import AuditLogEntry
from truename.models.consent import Consent
from truename.models.context_name_assignment import ContextNameAssignment
from truename.models.name import Name
from truename.models.user_context import UserContext

__all__ = [
    "AuditLogEntry",
    "Consent",
    "ContextNameAssignment",
    "Name",
    "UserContext",
]
