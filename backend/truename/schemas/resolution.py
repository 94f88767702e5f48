"""Name resolution request/response schemas."""

from __future__ import annotations

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from truename.resolution.types import NameResolution, ResolutionSource, ResolveRequest

_CONTEXT_NAME_RE = re.compile(r"^[a-zA-Z0-9\s\-_]+$")


def validate_context_name(value: str | None) -> str | None:
    """Reject context names with characters outside letters, digits, spaces, '-' and '_'."""

    if value is None:
        return None
    if not _CONTEXT_NAME_RE.match(value):
        raise ValueError("Context name contains invalid characters")
    return value


class ResolveNameRequest(BaseModel):
    """Single resolution payload."""

    target_user_id: UUID
    requester_user_id: UUID | None = None
    context_name: str | None = Field(default=None, min_length=1, max_length=100)

    @field_validator("context_name")
    @classmethod
    def _check_context_name(cls, value: str | None) -> str | None:
        return validate_context_name(value)

    @model_validator(mode="after")
    def _requester_differs_from_target(self) -> ResolveNameRequest:
        if self.requester_user_id is not None and self.requester_user_id == self.target_user_id:
            raise ValueError("Requester user ID cannot be the same as target user ID")
        return self

    def to_domain(self) -> ResolveRequest:
        return ResolveRequest(
            target_user_id=str(self.target_user_id),
            requester_user_id=str(self.requester_user_id) if self.requester_user_id else None,
            context_name=self.context_name,
        )


class ResolutionMetadataRead(BaseModel):
    resolution_timestamp: str
    performance_ms: float
    context_id: str | None = None
    context_name: str | None = None
    name_id: str | None = None
    consent_id: str | None = None
    fallback_reason: str | None = None
    requested_context: str | None = None
    had_requester: bool | None = None
    error: str | None = None


class NameResolutionRead(BaseModel):
    """Serialized resolution result."""

    name: str
    resolved_at: datetime
    source: ResolutionSource
    metadata: ResolutionMetadataRead

    @classmethod
    def from_resolution(cls, resolution: NameResolution) -> NameResolutionRead:
        metadata = resolution.metadata.as_dict()
        return cls(
            name=resolution.name,
            resolved_at=datetime.fromisoformat(resolution.metadata.resolution_timestamp),
            source=resolution.source,
            metadata=ResolutionMetadataRead(**metadata),
        )


class BatchResolutionItem(BaseModel):
    context: str
    resolved_name: str
    source: ResolutionSource
    response_time_ms: float
    error: str | None = None


class BatchResolutionRead(BaseModel):
    """Per-context resolutions for one user."""

    user_id: str
    resolutions: list[BatchResolutionItem]
    total_contexts: int
    successful_resolutions: int
    batch_time_ms: float
    timestamp: datetime
