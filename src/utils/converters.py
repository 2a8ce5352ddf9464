"""Conversions between ORM models and API schemas."""

from datetime import datetime
from typing import Optional

from models.audit_event import AuditEventModel
from models.elevation_request import ElevationRequestModel
from models.invite import InviteModel
from models.student import StudentModel
from models.user import UserModel
from schemas.audit import AuditEvent
from schemas.elevation import ElevationRequestInfo
from schemas.invite import InviteSummary
from schemas.student import StudentInfo
from schemas.user import CallerProfile
from utils.clock import parse_iso, utc_now


def invite_status(model: InviteModel, now: Optional[datetime] = None) -> str:
    """Derive the lifecycle state of an invite.

    Redeemed and revoked are persisted terminal states; expired is computed
    from ``expires_at`` at read time.
    """
    if model.revoked:
        return "revoked"
    if model.used:
        return "redeemed"
    if parse_iso(model.expires_at) < (now or utc_now()):
        return "expired"
    return "pending"


def model_to_profile(model: UserModel) -> CallerProfile:
    return CallerProfile(
        user_id=model.user_id,
        email=model.email,
        display_name=model.display_name,
        role=model.role,
        permissions=list(model.permissions or []),
        allowed_scopes=list(model.allowed_scopes or []),
        is_active=bool(model.is_active),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_invite_summary(
    model: InviteModel, now: Optional[datetime] = None
) -> InviteSummary:
    return InviteSummary(
        invite_id=model.invite_id,
        invited_email=model.invited_email,
        role=model.role,
        allowed_scopes=list(model.allowed_scopes or []),
        status=invite_status(model, now),
        expires_at=model.expires_at,
        created_by=model.created_by,
        created_at=model.created_at,
        used_by=model.used_by,
        used_at=model.used_at,
        revoked_by=model.revoked_by,
        revoked_at=model.revoked_at,
    )


def model_to_elevation_request(model: ElevationRequestModel) -> ElevationRequestInfo:
    return ElevationRequestInfo(
        request_id=model.request_id,
        name=model.name,
        email=model.email,
        invited_email=model.invited_email,
        requested_role=model.requested_role,
        allowed_scopes=list(model.allowed_scopes or []),
        target_user_id=model.target_user_id,
        status=model.status,
        submitted_by=model.submitted_by,
        created_at=model.created_at,
        reviewed_by=model.reviewed_by,
        reviewed_at=model.reviewed_at,
    )


def model_to_audit_event(model: AuditEventModel) -> AuditEvent:
    return AuditEvent(
        id=model.id,
        actor_id=model.actor_id,
        action=model.action,
        target_id=model.target_id,
        details=dict(model.details or {}),
        timestamp=model.timestamp,
    )


def model_to_student(model: StudentModel) -> StudentInfo:
    return StudentInfo(
        student_id=model.student_id,
        roll_number=model.roll_number,
        full_name=model.full_name,
        class_id=model.class_id,
        active=bool(model.active),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )
