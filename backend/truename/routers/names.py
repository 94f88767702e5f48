"""Name resolution routes."""

import logging
from datetime import datetime, timezone
from time import perf_counter
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from truename.resolution.engine import NameResolutionEngine
from truename.resolution.types import ResolutionSource, ResolveRequest
from truename.schemas.common import ApiResponse
from truename.schemas.resolution import (
    BatchResolutionItem,
    BatchResolutionRead,
    NameResolutionRead,
    ResolveNameRequest,
)
from truename.services.resolution import get_resolution_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/names")


@router.post("/resolve", response_model=ApiResponse[NameResolutionRead])
async def resolve_name(
    payload: ResolveNameRequest,
    engine: NameResolutionEngine = Depends(get_resolution_engine),
) -> ApiResponse[NameResolutionRead]:
    """Resolve which name variant to disclose for a target user."""

    resolution = await engine.resolve_name(payload.to_domain())
    logger.info(
        "api.resolve source=%s context_requested=%s had_requester=%s",
        resolution.source.value,
        payload.context_name or "none",
        payload.requester_user_id is not None,
    )
    return ApiResponse(data=NameResolutionRead.from_resolution(resolution))


@router.get("/resolve/batch/{user_id}", response_model=ApiResponse[BatchResolutionRead])
async def resolve_name_batch(
    user_id: UUID = Path(...),
    contexts: str = Query(..., min_length=1),
    requester_user_id: UUID | None = Query(default=None),
    engine: NameResolutionEngine = Depends(get_resolution_engine),
) -> ApiResponse[BatchResolutionRead]:
    """Resolve one user's name across several contexts at once."""

    context_names = [segment.strip() for segment in contexts.split(",") if segment.strip()]
    if not context_names:
        raise HTTPException(status_code=422, detail="At least one context is required")

    started = perf_counter()
    requests = [
        ResolveRequest(
            target_user_id=str(user_id),
            requester_user_id=str(requester_user_id) if requester_user_id else None,
            context_name=context_name,
        )
        for context_name in context_names
    ]
    resolutions = await engine.resolve_names(requests)

    items = [
        BatchResolutionItem(
            context=context_name,
            resolved_name=resolution.name,
            source=resolution.source,
            response_time_ms=resolution.metadata.performance_ms,
            error=resolution.metadata.error,
        )
        for context_name, resolution in zip(context_names, resolutions)
    ]
    batch_time_ms = (perf_counter() - started) * 1000.0
    successful = sum(1 for item in items if item.source != ResolutionSource.ERROR_FALLBACK)
    logger.info(
        "api.resolve_batch contexts=%d successful=%d batch_time_ms=%.2f",
        len(items),
        successful,
        batch_time_ms,
    )
    return ApiResponse(
        data=BatchResolutionRead(
            user_id=str(user_id),
            resolutions=items,
            total_contexts=len(items),
            successful_resolutions=successful,
            batch_time_ms=batch_time_ms,
            timestamp=datetime.now(timezone.utc),
        )
    )
