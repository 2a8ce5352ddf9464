"""Invite schema definitions."""

from typing import List, Optional

from pydantic import BaseModel, Field


class CreateInviteRequest(BaseModel):
    invited_email: str = Field(description="Email address the invite is bound to.")
    role: str = Field(description="Role granted on redemption, e.g. 'CR'.")
    allowed_scopes: List[str] = Field(
        default_factory=list,
        description="Class identifiers granted on redemption, e.g. ['2CEIT-B'].",
    )
    ttl_days: Optional[int] = Field(
        default=None,
        description="Days until the invite expires. Defaults to 7 when missing or non-positive.",
    )


class CreateInviteResponse(BaseModel):
    """Returned once at issuance; the only time the raw token is exposed."""

    invite_id: str
    token: str
    expires_at: str


class InviteSummary(BaseModel):
    """Invite listing entry. Never carries the token or its digest."""

    invite_id: str
    invited_email: Optional[str] = None
    role: str
    allowed_scopes: List[str] = Field(default_factory=list)
    status: str  # 'pending', 'redeemed', 'revoked' or 'expired'
    expires_at: str
    created_by: str
    created_at: str
    used_by: Optional[str] = None
    used_at: Optional[str] = None
    revoked_by: Optional[str] = None
    revoked_at: Optional[str] = None


class InviteListResponse(BaseModel):
    invites: List[InviteSummary]


class AcceptInviteRequest(BaseModel):
    token: str = ""


class AcceptInviteResponse(BaseModel):
    success: bool
    role: str
