"""Elevation request routes.

This module handles HTTP endpoints for filing and approving requests to be
promoted to CR.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, status

from api.routes.auth import get_current_caller
from core.dependencies import ElevationManagerDep
from schemas.elevation import (
    ApproveElevationRequest,
    ApproveElevationResponse,
    ElevationRequestInfo,
    SubmitElevationRequest,
)
from schemas.user import Caller

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/elevation-requests", tags=["Elevation"])


@router.post(
    "",
    response_model=ElevationRequestInfo,
    status_code=status.HTTP_201_CREATED,
    summary="File an elevation request",
)
def submit_request(
    req: SubmitElevationRequest,
    caller: Caller = Depends(get_current_caller),
    elevation_manager: ElevationManagerDep = None,
) -> ElevationRequestInfo:
    """File a pending elevation request. Any authenticated caller may file."""
    return elevation_manager.submit_request(
        caller.caller_id,
        caller.email,
        name=req.name,
        email=req.email,
        requested_role=req.requested_role,
        allowed_scopes=req.allowed_scopes,
    )


@router.get("", response_model=List[ElevationRequestInfo], summary="List elevation requests")
def list_requests(
    status_filter: Optional[str] = None,
    caller: Caller = Depends(get_current_caller),
    elevation_manager: ElevationManagerDep = None,
) -> List[ElevationRequestInfo]:
    """List elevation requests for reviewers holding ``approve_cr``."""
    return elevation_manager.list_requests(caller.caller_id, status=status_filter)


@router.post(
    "/{request_id}/approve",
    response_model=ApproveElevationResponse,
    summary="Approve an elevation request",
)
def approve_request(
    request_id: str,
    req: Optional[ApproveElevationRequest] = Body(default=None),
    caller: Caller = Depends(get_current_caller),
    elevation_manager: ElevationManagerDep = None,
) -> ApproveElevationResponse:
    """Approve a request and promote its target.

    Permission requirements:
    - ``approve_cr`` (HOD / ADMIN by default)

    Approving an already approved request succeeds without changes.
    """
    target_id = req.target_id if req else None
    return elevation_manager.approve(caller.caller_id, request_id, target_id)
