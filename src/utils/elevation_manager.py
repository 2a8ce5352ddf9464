"""Elevation (CR) request handling.

Students file requests to be promoted; approvers holding ``approve_cr``
promote the target identity. Approval is idempotent: approving an already
approved request succeeds without touching the profile or the audit log.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from core.exceptions import InvalidArgumentError, NotFoundError, UnauthenticatedError
from models.elevation_request import ElevationRequestModel
from schemas.elevation import ApproveElevationResponse, ElevationRequestInfo
from schemas.user import ROLE_RANK, Role, parse_role
from utils.clock import utc_now_iso
from utils.converters import model_to_elevation_request
from utils.gated_mutation import GatedMutationExecutor, MutationResult
from utils.permission_oracle import PermissionOracle, clean_scopes
from utils.profile_manager import ProfileManager

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"

# Explicit permissions granted to every approved CR
DEFAULT_CR_PERMISSIONS = ["take_attendance", "view_reports"]


class ElevationManager:
    """Manages elevation request submission and approval."""

    def __init__(self, db: Session):
        self.db = db
        self.oracle = PermissionOracle(db)
        self.executor = GatedMutationExecutor(db, self.oracle)
        self.profiles = ProfileManager(db)

    def submit_request(
        self,
        caller_id: Optional[str],
        caller_email: Optional[str],
        name: Optional[str] = None,
        email: Optional[str] = None,
        requested_role: str = Role.CR.value,
        allowed_scopes: Optional[List[str]] = None,
    ) -> ElevationRequestInfo:
        """File a pending elevation request.

        Without ``email`` the request targets the caller. Only roles below
        HOD can be requested.

        Raises:
            UnauthenticatedError: If ``caller_id`` is empty.
            InvalidArgumentError: If the requested role is invalid.
        """
        if not caller_id:
            raise UnauthenticatedError("Authentication required")
        role = parse_role(requested_role)
        if role is None or ROLE_RANK[role] >= ROLE_RANK[Role.HOD.value]:
            raise InvalidArgumentError(f"Invalid requested role: {requested_role}")

        email = (email or "").strip().lower()
        caller_email = (caller_email or "").strip().lower()
        target_user_id = None
        if not email or email == caller_email:
            email = caller_email
            target_user_id = caller_id

        model = ElevationRequestModel(
            request_id=uuid.uuid4().hex,
            name=name,
            email=email or None,
            invited_email=email or None,
            requested_role=role,
            allowed_scopes=clean_scopes(allowed_scopes),
            target_user_id=target_user_id,
            status=STATUS_PENDING,
            submitted_by=caller_id,
            created_at=utc_now_iso(),
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info("Elevation request %s submitted by %s", model.request_id, caller_id)
        return model_to_elevation_request(model)

    def list_requests(
        self, caller_id: Optional[str], status: Optional[str] = None
    ) -> List[ElevationRequestInfo]:
        """List elevation requests for reviewers, newest first."""
        self.oracle.require(caller_id, "approve_cr")
        query = self.db.query(ElevationRequestModel)
        if status:
            query = query.filter(ElevationRequestModel.status == status)
        models = query.order_by(ElevationRequestModel.created_at.desc()).all()
        return [model_to_elevation_request(m) for m in models]

    def approve(
        self,
        caller_id: Optional[str],
        request_id: str,
        target_id: Optional[str] = None,
    ) -> ApproveElevationResponse:
        """Approve an elevation request and promote its target.

        The target is ``target_id`` if given, else the request's known
        target, else the profile matching the request's email, else a new
        placeholder id.

        Args:
            caller_id: Reviewer; needs ``approve_cr``.
            request_id: Request to approve.
            target_id: Optional explicit identity to promote.

        Returns:
            ApproveElevationResponse with the promoted identity.

        Raises:
            UnauthenticatedError: If ``caller_id`` is empty.
            PermissionDeniedError: If the caller lacks ``approve_cr``.
            InvalidArgumentError: If ``request_id`` is empty.
            NotFoundError: If the request does not exist.
        """

        def mutation(db, caller):
            if not request_id:
                raise InvalidArgumentError("request_id is required")
            req = (
                db.query(ElevationRequestModel)
                .filter(ElevationRequestModel.request_id == request_id)
                .first()
            )
            if req is None:
                raise NotFoundError("CR request not found")
            if req.status == STATUS_APPROVED:
                return MutationResult(
                    value=ApproveElevationResponse(
                        success=True, target_id=req.target_user_id, message="Already approved"
                    ),
                    changed=False,
                )

            request_email = req.invited_email or req.email or ""
            target = (
                target_id
                or req.target_user_id
                or self.profiles.find_user_id_by_email(request_email)
                or uuid.uuid4().hex
            )

            updated = (
                db.query(ElevationRequestModel)
                .filter(
                    ElevationRequestModel.request_id == request_id,
                    ElevationRequestModel.status == STATUS_PENDING,
                )
                .update(
                    {
                        ElevationRequestModel.status: STATUS_APPROVED,
                        ElevationRequestModel.reviewed_by: caller_id,
                        ElevationRequestModel.reviewed_at: utc_now_iso(),
                        ElevationRequestModel.target_user_id: target,
                    },
                    synchronize_session=False,
                )
            )
            if updated != 1:
                # Approved concurrently by another reviewer
                return MutationResult(
                    value=ApproveElevationResponse(success=True, message="Already approved"),
                    changed=False,
                )

            self.profiles.upsert_profile(
                target,
                role=parse_role(req.requested_role) or Role.CR.value,
                allowed_scopes=req.allowed_scopes or [],
                permissions=DEFAULT_CR_PERMISSIONS,
                email=request_email or None,
                display_name=req.name,
                is_active=True,
            )
            return MutationResult(
                value=ApproveElevationResponse(success=True, target_id=target),
                target_id=target,
                details={"requestId": request_id},
            )

        return self.executor.execute(caller_id, "approve_cr", mutation, "approve_cr")
