"""Elevation request schema definitions."""

from typing import List, Optional

from pydantic import BaseModel, Field


class SubmitElevationRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    requested_role: str = "CR"
    allowed_scopes: List[str] = Field(default_factory=list)


class ElevationRequestInfo(BaseModel):
    request_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    invited_email: Optional[str] = None
    requested_role: str
    allowed_scopes: List[str] = Field(default_factory=list)
    target_user_id: Optional[str] = None
    status: str
    submitted_by: Optional[str] = None
    created_at: str
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[str] = None


class ApproveElevationRequest(BaseModel):
    target_id: Optional[str] = Field(
        default=None,
        description="Identity to promote. Resolved from the request when omitted.",
    )


class ApproveElevationResponse(BaseModel):
    success: bool
    target_id: Optional[str] = None
    message: Optional[str] = None
