"""Audit log routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.routes.auth import get_current_caller
from config import AUDIT_LIST_LIMIT
from core.dependencies import AuditRecorderDep, PermissionOracleDep
from schemas.audit import AuditEventListResponse
from schemas.user import Caller
from utils.converters import model_to_audit_event

router = APIRouter(prefix="/api/audit-logs", tags=["Audit"])


@router.get("", response_model=AuditEventListResponse, summary="List audit events")
def list_audit_events(
    action: Optional[str] = None,
    target_id: Optional[str] = None,
    limit: int = Query(default=AUDIT_LIST_LIMIT, ge=1, le=AUDIT_LIST_LIMIT),
    caller: Caller = Depends(get_current_caller),
    oracle: PermissionOracleDep = None,
    recorder: AuditRecorderDep = None,
) -> AuditEventListResponse:
    """List audit events, newest first.

    Permission requirements:
    - ``view_audit_logs`` (HOD / ADMIN by default)
    """
    oracle.require(caller.caller_id, "view_audit_logs")
    events = recorder.list_events(limit, action=action, target_id=target_id)
    return AuditEventListResponse(events=[model_to_audit_event(e) for e in events])
