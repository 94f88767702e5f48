"""Typed values exchanged by the resolution engine and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

ANONYMOUS_NAME = "Anonymous User"
_DATABASE_ERROR_SUFFIX = "_with_database_error"


class ResolutionSource(str, Enum):
    """Which layer of the priority chain produced a name."""

    CONSENT_BASED = "consent_based"
    CONTEXT_SPECIFIC = "context_specific"
    PREFERRED_FALLBACK = "preferred_fallback"
    ERROR_FALLBACK = "error_fallback"


class FallbackReason(str, Enum):
    """Diagnostic code explaining why the preferred-name layer was reached."""

    NO_CONSENT_AND_NO_CONTEXT_ASSIGNMENT = "no_consent_and_no_context_assignment"
    NO_ACTIVE_CONSENT = "no_active_consent"
    CONTEXT_NOT_FOUND_OR_NO_ASSIGNMENT = "context_not_found_or_no_assignment"
    NO_SPECIFIC_REQUEST = "no_specific_request"
    NO_CONSENT_AND_NO_CONTEXT_ASSIGNMENT_WITH_DATABASE_ERROR = (
        "no_consent_and_no_context_assignment_with_database_error"
    )
    NO_ACTIVE_CONSENT_WITH_DATABASE_ERROR = "no_active_consent_with_database_error"
    CONTEXT_NOT_FOUND_OR_NO_ASSIGNMENT_WITH_DATABASE_ERROR = (
        "context_not_found_or_no_assignment_with_database_error"
    )
    NO_SPECIFIC_REQUEST_WITH_DATABASE_ERROR = "no_specific_request_with_database_error"

    @classmethod
    def for_request_shape(cls, *, has_requester: bool, has_context: bool) -> FallbackReason:
        """Derive the reason from which optional inputs were supplied."""

        if has_requester and has_context:
            return cls.NO_CONSENT_AND_NO_CONTEXT_ASSIGNMENT
        if has_requester:
            return cls.NO_ACTIVE_CONSENT
        if has_context:
            return cls.CONTEXT_NOT_FOUND_OR_NO_ASSIGNMENT
        return cls.NO_SPECIFIC_REQUEST

    @property
    def is_database_error(self) -> bool:
        return self.value.endswith(_DATABASE_ERROR_SUFFIX)

    def with_database_error(self) -> FallbackReason:
        """Return the variant reported when the fallback lookup itself failed."""

        if self.is_database_error:
            return self
        return FallbackReason(self.value + _DATABASE_ERROR_SUFFIX)


class NameCategory(str, Enum):
    LEGAL = "LEGAL"
    PREFERRED = "PREFERRED"
    NICKNAME = "NICKNAME"
    ALIAS = "ALIAS"


class ConsentStatus(str, Enum):
    PENDING = "PENDING"
    GRANTED = "GRANTED"
    REVOKED = "REVOKED"


class AuditAction(str, Enum):
    NAME_DISCLOSED = "NAME_DISCLOSED"


@dataclass(frozen=True, slots=True)
class ConsentRecord:
    """Active grant from a target to a requester for one context."""

    context_id: str
    context_name: str
    consent_id: str
    granted_at: datetime | None
    expires_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class ContextAssignmentRecord:
    """Name bound to a (user, context name) pair."""

    name_id: str
    name_text: str
    context_id: str
    context_name: str
    name_type: str


@dataclass(frozen=True, slots=True)
class PreferredNameRecord:
    name_id: str
    name_text: str
    name_type: str
    is_preferred: bool


@dataclass(frozen=True, slots=True)
class NameTextRecord:
    name_text: str


@dataclass(frozen=True, slots=True)
class Lookup(Generic[T]):
    """Outcome of one collaborator lookup: found, missing, or failed.

    Lookups report database problems as values so the priority chain can
    treat them as "not found" without intercepting exceptions.
    """

    record: T | None = None
    error: str | None = None

    @classmethod
    def found(cls, record: T) -> Lookup[T]:
        return cls(record=record)

    @classmethod
    def missing(cls) -> Lookup[T]:
        return cls()

    @classmethod
    def failure(cls, message: str) -> Lookup[T]:
        return cls(error=message or "Unknown error")

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def is_found(self) -> bool:
        return self.error is None and self.record is not None


@dataclass(frozen=True, slots=True)
class ResolveRequest:
    """Whose name to disclose, to whom, and for which audience."""

    target_user_id: str
    requester_user_id: str | None = None
    context_name: str | None = None

    @property
    def has_requester(self) -> bool:
        return bool(self.requester_user_id)

    @property
    def has_context(self) -> bool:
        return bool(self.context_name)

    @property
    def has_usable_context(self) -> bool:
        """True when the context layer should run (non-blank after trimming)."""

        return bool(self.context_name and self.context_name.strip())


@dataclass(frozen=True, slots=True)
class ResolutionMetadata:
    """Provenance attached to every resolution."""

    resolution_timestamp: str
    performance_ms: float
    context_id: str | None = None
    context_name: str | None = None
    name_id: str | None = None
    consent_id: str | None = None
    fallback_reason: FallbackReason | None = None
    requested_context: str | None = None
    had_requester: bool | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return only the populated fields, with enums flattened to strings."""

        payload: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is None:
                continue
            payload[item.name] = value.value if isinstance(value, Enum) else value
        return payload


@dataclass(frozen=True, slots=True)
class NameResolution:
    name: str
    source: ResolutionSource
    metadata: ResolutionMetadata


@dataclass(frozen=True, slots=True)
class AuditEvent:
    """Immutable disclosure record handed to the audit sink."""

    target_user_id: str
    requester_user_id: str | None
    source: ResolutionSource
    resolved_name: str
    name_id: str | None
    metadata: ResolutionMetadata
    action: AuditAction = AuditAction.NAME_DISCLOSED

    @classmethod
    def from_resolution(cls, request: ResolveRequest, resolution: NameResolution) -> AuditEvent:
        return cls(
            target_user_id=request.target_user_id,
            requester_user_id=request.requester_user_id,
            source=resolution.source,
            resolved_name=resolution.name,
            name_id=resolution.metadata.name_id,
            metadata=resolution.metadata,
        )

    def details(self) -> dict[str, Any]:
        """JSON details stored alongside the audit row."""

        metadata = self.metadata
        return {
            "resolution_type": self.source.value,
            "resolved_name": self.resolved_name,
            "resolution_timestamp": metadata.resolution_timestamp,
            "performance_ms": metadata.performance_ms,
            "fallback_reason": metadata.fallback_reason.value if metadata.fallback_reason else None,
            "requested_context": metadata.requested_context,
            "had_requester": metadata.had_requester,
            "consent_id": metadata.consent_id,
            "error": metadata.error,
        }


@dataclass(frozen=True, slots=True)
class BenchmarkStats:
    iterations: int
    average_ms: float
    min_ms: float
    max_ms: float
    total_ms: float
