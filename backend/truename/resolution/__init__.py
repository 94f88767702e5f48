"""Name resolution package."""

from truename.resolution.audit import AuditDispatcher
from truename.resolution.engine import NameResolutionEngine, create_resolution_engine
from truename.resolution.store import IdentityStore
from truename.resolution.types import (
    ANONYMOUS_NAME,
    AuditEvent,
    FallbackReason,
    Lookup,
    NameResolution,
    ResolutionMetadata,
    ResolutionSource,
    ResolveRequest,
)

__all__ = [
    "ANONYMOUS_NAME",
    "AuditDispatcher",
    "AuditEvent",
    "FallbackReason",
    "IdentityStore",
    "Lookup",
    "NameResolution",
    "NameResolutionEngine",
    "ResolutionMetadata",
    "ResolutionSource",
    "ResolveRequest",
    "create_resolution_engine",
]
