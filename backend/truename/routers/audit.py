"""Disclosure audit log routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from truename.db.dependencies import get_db
from truename.schemas.audit import AuditLogPage
from truename.schemas.common import ApiResponse
from truename.services.audit_log import list_audit_entries

router = APIRouter(prefix="/audit")


@router.get("/{target_user_id}", response_model=ApiResponse[AuditLogPage])
def get_audit_entries(
    target_user_id: UUID = Path(...),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> ApiResponse[AuditLogPage]:
    """List name disclosures for a user, newest first."""

    return ApiResponse(data=list_audit_entries(db, str(target_user_id), limit=limit, offset=offset))
