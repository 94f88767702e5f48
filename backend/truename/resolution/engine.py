"""Context-aware name resolution with a fixed priority chain.

Layers are tried in order and the first that produces a name wins:

1. consent-based: an active grant from the target to the requester;
2. context-specific: a name the target assigned to the requested context;
3. preferred fallback: the target's default name, or ``"Anonymous User"``.

Any unexpected failure becomes an ``error_fallback`` result. Every call emits
exactly one audit event, written in the background after the result exists.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from time import perf_counter

from truename.resolution.audit import AuditDispatcher
from truename.resolution.store import IdentityStore
from truename.resolution.types import (
    ANONYMOUS_NAME,
    AuditEvent,
    BenchmarkStats,
    FallbackReason,
    NameResolution,
    ResolutionMetadata,
    ResolutionSource,
    ResolveRequest,
)

logger = logging.getLogger(__name__)


class NameResolutionEngine:
    """Stateless resolver over an injected ``IdentityStore``."""

    def __init__(self, store: IdentityStore, *, audit: AuditDispatcher | None = None) -> None:
        self._store = store
        self._audit = audit or AuditDispatcher(store.insert_audit_event)

    @property
    def audit(self) -> AuditDispatcher:
        return self._audit

    async def resolve_name(self, request: ResolveRequest) -> NameResolution:
        """Resolve the name to disclose for ``request``. Never raises."""

        started = perf_counter()
        try:
            resolution = await self._resolve_by_priority(request, started)
        except Exception as exc:
            logger.exception(
                "resolution.failed target_user_id=%s had_requester=%s requested_context=%s",
                request.target_user_id,
                request.has_requester,
                request.context_name,
            )
            resolution = NameResolution(
                name=ANONYMOUS_NAME,
                source=ResolutionSource.ERROR_FALLBACK,
                metadata=ResolutionMetadata(
                    resolution_timestamp=_utc_timestamp(),
                    performance_ms=_elapsed_ms(started),
                    error=str(exc) or exc.__class__.__name__,
                    requested_context=request.context_name,
                    had_requester=request.has_requester,
                ),
            )

        self._emit_audit(request, resolution)
        return resolution

    async def resolve_names(self, requests: Sequence[ResolveRequest]) -> list[NameResolution]:
        """Resolve many requests concurrently, preserving input order."""

        return list(await asyncio.gather(*(self.resolve_name(request) for request in requests)))

    async def resolve_name_simple(self, target_user_id: str, context_name: str | None = None) -> str:
        """Resolve and return only the disclosed name."""

        resolution = await self.resolve_name(
            ResolveRequest(target_user_id=target_user_id, context_name=context_name)
        )
        return resolution.name

    async def benchmark(self, request: ResolveRequest, iterations: int = 10) -> BenchmarkStats:
        """Time ``iterations`` sequential resolutions of the same request."""

        if iterations < 1:
            raise ValueError("iterations must be at least 1")

        samples: list[float] = []
        for _ in range(iterations):
            started = perf_counter()
            await self.resolve_name(request)
            samples.append(_elapsed_ms(started))

        total_ms = sum(samples)
        return BenchmarkStats(
            iterations=iterations,
            average_ms=total_ms / iterations,
            min_ms=min(samples),
            max_ms=max(samples),
            total_ms=total_ms,
        )

    async def drain_audits(self) -> None:
        """Wait for in-flight audit writes (shutdown and tests)."""

        await self._audit.drain()

    async def _resolve_by_priority(self, request: ResolveRequest, started: float) -> NameResolution:
        if request.has_requester:
            consent_result = await self._resolve_with_consent(request, started)
            if consent_result is not None:
                return consent_result

        if request.has_usable_context:
            context_result = await self._resolve_with_context(request, started)
            if context_result is not None:
                return context_result

        return await self._resolve_with_fallback(request, started)

    async def _resolve_with_consent(
        self,
        request: ResolveRequest,
        started: float,
    ) -> NameResolution | None:
        target_user_id = request.target_user_id
        requester_user_id = request.requester_user_id
        if not requester_user_id:
            return None

        try:
            consent_lookup = await self._store.get_active_consent(target_user_id, requester_user_id)
            if consent_lookup.failed:
                logger.warning(
                    "resolution.consent_lookup_failed target_user_id=%s error=%s",
                    target_user_id,
                    consent_lookup.error,
                )
                return None
            consent = consent_lookup.record
            if consent is None:
                return None

            assignment_lookup = await self._store.get_context_assignment(
                target_user_id,
                consent.context_name,
            )
            assignment = assignment_lookup.record
            if assignment_lookup.failed or assignment is None or not assignment.name_id:
                logger.warning(
                    "resolution.consented_context_unassigned target_user_id=%s context_id=%s error=%s",
                    target_user_id,
                    consent.context_id,
                    assignment_lookup.error,
                )
                return None

            name_lookup = await self._store.get_name_text(assignment.name_id)
            if name_lookup.failed or name_lookup.record is None:
                logger.warning(
                    "resolution.consented_name_fetch_failed target_user_id=%s name_id=%s error=%s",
                    target_user_id,
                    assignment.name_id,
                    name_lookup.error,
                )
                return None
        except Exception:
            logger.exception("resolution.consent_layer_exception target_user_id=%s", target_user_id)
            return None

        return NameResolution(
            name=name_lookup.record.name_text,
            source=ResolutionSource.CONSENT_BASED,
            metadata=ResolutionMetadata(
                resolution_timestamp=_utc_timestamp(),
                performance_ms=_elapsed_ms(started),
                context_id=consent.context_id,
                context_name=consent.context_name,
                name_id=assignment.name_id,
                consent_id=consent.consent_id,
                requested_context=request.context_name,
                had_requester=True,
            ),
        )

    async def _resolve_with_context(
        self,
        request: ResolveRequest,
        started: float,
    ) -> NameResolution | None:
        context_name = request.context_name
        if not context_name:
            return None

        try:
            lookup = await self._store.get_context_assignment(request.target_user_id, context_name)
        except Exception:
            logger.exception(
                "resolution.context_layer_exception target_user_id=%s context_name=%s",
                request.target_user_id,
                context_name,
            )
            return None

        if lookup.failed:
            logger.warning(
                "resolution.context_lookup_failed target_user_id=%s context_name=%s error=%s",
                request.target_user_id,
                context_name,
                lookup.error,
            )
            return None
        assignment = lookup.record
        if assignment is None:
            return None

        return NameResolution(
            name=assignment.name_text,
            source=ResolutionSource.CONTEXT_SPECIFIC,
            metadata=ResolutionMetadata(
                resolution_timestamp=_utc_timestamp(),
                performance_ms=_elapsed_ms(started),
                context_id=assignment.context_id,
                context_name=assignment.context_name,
                name_id=assignment.name_id,
                requested_context=context_name,
                had_requester=request.has_requester,
            ),
        )

    async def _resolve_with_fallback(self, request: ResolveRequest, started: float) -> NameResolution:
        # Exceptions from this lookup propagate to resolve_name's error fallback.
        lookup = await self._store.get_preferred_name(request.target_user_id)

        # Derived from the request shape only, whatever the lookup returned.
        reason = FallbackReason.for_request_shape(
            has_requester=request.has_requester,
            has_context=request.has_context,
        )

        if lookup.failed:
            logger.warning(
                "resolution.preferred_lookup_failed target_user_id=%s error=%s",
                request.target_user_id,
                lookup.error,
            )
            return NameResolution(
                name=ANONYMOUS_NAME,
                source=ResolutionSource.PREFERRED_FALLBACK,
                metadata=ResolutionMetadata(
                    resolution_timestamp=_utc_timestamp(),
                    performance_ms=_elapsed_ms(started),
                    fallback_reason=reason.with_database_error(),
                    requested_context=request.context_name,
                    had_requester=request.has_requester,
                    error=lookup.error,
                ),
            )

        preferred = lookup.record
        return NameResolution(
            name=preferred.name_text if preferred is not None else ANONYMOUS_NAME,
            source=ResolutionSource.PREFERRED_FALLBACK,
            metadata=ResolutionMetadata(
                resolution_timestamp=_utc_timestamp(),
                performance_ms=_elapsed_ms(started),
                name_id=preferred.name_id if preferred is not None else None,
                fallback_reason=reason,
                requested_context=request.context_name,
                had_requester=request.has_requester,
            ),
        )

    def _emit_audit(self, request: ResolveRequest, resolution: NameResolution) -> None:
        try:
            self._audit.submit(AuditEvent.from_resolution(request, resolution))
        except Exception:
            logger.exception(
                "audit.submit_failed target_user_id=%s source=%s",
                request.target_user_id,
                resolution.source.value,
            )


def create_resolution_engine(store: IdentityStore | None = None) -> NameResolutionEngine:
    """Build an engine over ``store``, defaulting to the SQL-backed store."""

    if store is None:
        from truename.db.session import SessionLocal
        from truename.services.identity_store import SqlIdentityStore

        store = SqlIdentityStore(SessionLocal)
    return NameResolutionEngine(store)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _elapsed_ms(started: float) -> float:
    return max(0.0, (perf_counter() - started) * 1000.0)
