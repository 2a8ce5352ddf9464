"""Invite routes.

This module handles HTTP endpoints for issuing, listing, revoking and
redeeming invites.
"""

import logging

from fastapi import APIRouter, Depends, status

from api.routes.auth import get_current_caller
from core.dependencies import InviteManagerDep
from schemas.invite import (
    AcceptInviteRequest,
    AcceptInviteResponse,
    CreateInviteRequest,
    CreateInviteResponse,
    InviteListResponse,
)
from schemas.user import Caller

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invites", tags=["Invites"])


@router.post(
    "",
    response_model=CreateInviteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue an invite",
)
def create_invite(
    req: CreateInviteRequest,
    caller: Caller = Depends(get_current_caller),
    invite_manager: InviteManagerDep = None,
) -> CreateInviteResponse:
    """Issue an invite and queue its email.

    Permission requirements:
    - CC: only for scopes the caller holds
    - HOD / ADMIN: any scope
    - Nobody can invite to a role above their own

    The raw token is only ever returned here.
    """
    return invite_manager.create_invite(
        caller.caller_id,
        invited_email=req.invited_email,
        role=req.role,
        allowed_scopes=req.allowed_scopes,
        ttl_days=req.ttl_days,
    )


@router.get("", response_model=InviteListResponse, summary="List invites")
def list_invites(
    caller: Caller = Depends(get_current_caller),
    invite_manager: InviteManagerDep = None,
) -> InviteListResponse:
    """List invites, newest first.

    HOD and ADMIN see every invite; other callers see the ones they issued.
    """
    return InviteListResponse(invites=invite_manager.list_invites(caller.caller_id))


@router.post("/accept", response_model=AcceptInviteResponse, summary="Redeem an invite")
def accept_invite(
    req: AcceptInviteRequest,
    caller: Caller = Depends(get_current_caller),
    invite_manager: InviteManagerDep = None,
) -> AcceptInviteResponse:
    """Redeem an invite token for the authenticated caller."""
    return invite_manager.accept_invite(caller.caller_id, caller.email, req.token)


@router.post("/{invite_id}/revoke", summary="Revoke an invite")
def revoke_invite(
    invite_id: str,
    caller: Caller = Depends(get_current_caller),
    invite_manager: InviteManagerDep = None,
) -> dict:
    """Revoke a pending invite.

    Permission requirements:
    - The invite's creator, or HOD / ADMIN
    """
    invite_manager.revoke_invite(caller.caller_id, invite_id)
    return {"success": True}
