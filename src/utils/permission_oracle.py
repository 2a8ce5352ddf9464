"""Permission resolution and scope delegation checks.

All gated operations ask this module whether a caller may act. The answer is
a pure function of the stored caller profile, re-read on every call.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, PermissionDeniedError, UnauthenticatedError
from models.user import UserModel
from schemas.user import ROLE_RANK, TOP_LEVEL_ROLES, Role

logger = logging.getLogger(__name__)

# Permission -> roles granted it without an explicit grant
PERMISSION_ROLES: Dict[str, FrozenSet[str]] = {
    "create_invite": frozenset({Role.CC.value, Role.HOD.value, Role.ADMIN.value}),
    "approve_cr": frozenset({Role.HOD.value, Role.ADMIN.value}),
    "deactivate_student": frozenset({Role.HOD.value, Role.ADMIN.value}),
    "send_pending_emails": frozenset({Role.HOD.value, Role.ADMIN.value}),
    "revoke_session": frozenset({Role.ADMIN.value}),
    "view_audit_logs": frozenset({Role.HOD.value, Role.ADMIN.value}),
    "take_attendance": frozenset(
        {Role.CR.value, Role.CC.value, Role.HOD.value, Role.ADMIN.value}
    ),
    "view_reports": frozenset(
        {Role.CR.value, Role.CC.value, Role.HOD.value, Role.ADMIN.value}
    ),
}

# Roles allowed to issue invites at all
INVITE_ISSUER_ROLES = PERMISSION_ROLES["create_invite"]

# Issuer role whose invites are limited to its own scopes
SCOPE_LIMITED_ROLE = Role.CC.value


def _normalize_scope(scope) -> str:
    return str(scope).strip().casefold()


def clean_scopes(scopes: Optional[Iterable[str]]) -> List[str]:
    """Trim scopes and drop blanks and duplicates, keeping order."""
    cleaned: List[str] = []
    for scope in scopes or []:
        value = str(scope).strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


def within_scope(delegator_scopes: Iterable[str], requested_scopes: Iterable[str]) -> bool:
    """Check whether requested scopes are a subset of a delegator's scopes.

    Comparison trims whitespace and ignores case. An empty request is always
    within scope; otherwise a delegator without scopes can delegate nothing.

    Args:
        delegator_scopes: Scopes held by the caller issuing the grant.
        requested_scopes: Scopes the grant would confer.

    Returns:
        True if every requested scope is held by the delegator.
    """
    requested = [_normalize_scope(s) for s in (requested_scopes or [])]
    if not requested:
        return True
    allowed = {_normalize_scope(s) for s in (delegator_scopes or [])}
    if not allowed:
        return False
    return all(scope in allowed for scope in requested)


@dataclass(frozen=True)
class CallerPermissions:
    """Effective permission set of a caller."""

    user_id: str
    role: str
    permissions: FrozenSet[str] = field(default_factory=frozenset)
    scopes: List[str] = field(default_factory=list)
    active: bool = True

    @property
    def is_top_level(self) -> bool:
        return self.role in TOP_LEVEL_ROLES

    @property
    def rank(self) -> int:
        return ROLE_RANK.get(self.role, -1)

    def grants(self, permission: str) -> bool:
        if not self.active:
            return False
        if self.is_top_level:
            return True
        if permission in self.permissions:
            return True
        return self.role in PERMISSION_ROLES.get(permission, frozenset())


class PermissionOracle:
    """Resolves callers to their effective permissions."""

    def __init__(self, db: Session):
        """Initialize PermissionOracle.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def find(self, caller_id: Optional[str]) -> Optional[CallerPermissions]:
        if not caller_id:
            return None
        model = self.db.query(UserModel).filter(UserModel.user_id == caller_id).first()
        if model is None:
            return None
        return CallerPermissions(
            user_id=model.user_id,
            role=str(model.role or "").upper(),
            permissions=frozenset(model.permissions or []),
            scopes=list(model.allowed_scopes or []),
            active=bool(model.is_active),
        )

    def resolve(self, caller_id: str) -> CallerPermissions:
        """Resolve a caller to its role, permissions, scopes and active flag.

        Raises:
            NotFoundError: If no profile exists for ``caller_id``.
        """
        resolved = self.find(caller_id)
        if resolved is None:
            raise NotFoundError(f"Profile '{caller_id}' not found")
        return resolved

    def authorize(self, caller_id: str, permission: str) -> bool:
        """Return True if the caller holds ``permission``.

        Inactive or unknown callers are never authorized. HOD and ADMIN hold
        every permission; other roles need an explicit grant or a role
        default from ``PERMISSION_ROLES``.
        """
        resolved = self.find(caller_id)
        return resolved is not None and resolved.grants(permission)

    def is_top_level(self, caller_id: str) -> bool:
        resolved = self.find(caller_id)
        return resolved is not None and resolved.active and resolved.is_top_level

    def require(self, caller_id: Optional[str], permission: str) -> CallerPermissions:
        """Resolve the caller and fail unless it holds ``permission``.

        Raises:
            UnauthenticatedError: If ``caller_id`` is empty.
            PermissionDeniedError: If the caller lacks the permission.
        """
        if not caller_id:
            raise UnauthenticatedError("Authentication required")
        resolved = self.find(caller_id)
        if resolved is None or not resolved.grants(permission):
            logger.warning("Denied %s to caller %s", permission, caller_id)
            raise PermissionDeniedError(f"Caller lacks {permission} permission")
        return resolved
