"""Caller and identity schema definitions.

This module defines the role hierarchy, the caller profile, and the request
and response models of the authentication routes.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Caller roles, lowest to highest."""

    STUDENT = "STUDENT"
    CR = "CR"
    CC = "CC"
    HOD = "HOD"
    ADMIN = "ADMIN"


ROLE_RANK: Dict[str, int] = {
    Role.STUDENT.value: 0,
    Role.CR.value: 1,
    Role.CC.value: 2,
    Role.HOD.value: 3,
    Role.ADMIN.value: 4,
}

# Roles that bypass explicit permission lists and scope checks
TOP_LEVEL_ROLES = frozenset({Role.HOD.value, Role.ADMIN.value})


def parse_role(value: Any) -> Optional[str]:
    """Return the canonical role name for ``value``, or None if unknown."""
    if isinstance(value, Role):
        return value.value
    name = str(value or "").strip().upper()
    return name if name in ROLE_RANK else None


class Caller(BaseModel):
    """Authenticated caller as asserted by the identity provider."""

    caller_id: str
    email: str = ""
    claims: Dict[str, Any] = Field(default_factory=dict)


class CallerProfile(BaseModel):
    """Stored profile of a caller."""

    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    role: str = Role.STUDENT.value
    permissions: List[str] = Field(default_factory=list)
    allowed_scopes: List[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: str
    updated_at: str


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=8)
    display_name: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    user_id: str
    email: str
    token: str


class CurrentUserResponse(BaseModel):
    caller_id: str
    email: str
    profile: Optional[CallerProfile] = None


class RevokeSessionsRequest(BaseModel):
    uid: str = ""
