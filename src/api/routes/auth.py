"""Authentication routes.

This module handles HTTP endpoints for identity registration, login, and
session revocation, and provides the ``get_current_caller`` dependency used
by every gated route.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

import pytz
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET_KEY
from core.dependencies import IdentityProviderDep, ProfileManagerDep
from core.exceptions import NotFoundError
from schemas.user import (
    Caller,
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RevokeSessionsRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# HTTP Bearer token security; missing headers are reported as 401 below
security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token.

    Args:
        data: Claims to encode; ``sub`` must be the caller id.
        expires_delta: Optional expiration time delta.

    Returns:
        Encoded JWT token string.
    """
    to_encode = data.copy()
    now = datetime.now(pytz.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"iat": now, "exp": expire})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """Verify JWT token from Authorization header.

    Args:
        credentials: HTTP Bearer token credentials.

    Returns:
        Decoded token payload.

    Raises:
        HTTPException: If token is missing, invalid or expired.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    try:
        payload = jwt.decode(
            credentials.credentials, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM]
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )
    return payload


def get_current_caller(
    token_payload: dict = Depends(verify_token),
    identity_provider: IdentityProviderDep = None,
) -> Caller:
    """Get the authenticated caller.

    Tokens of disabled identities, and tokens issued before the identity's
    sessions were revoked, are rejected.

    Args:
        token_payload: Decoded JWT token payload.
        identity_provider: Injected IdentityProvider instance.

    Returns:
        Caller with id, email and the raw claims.

    Raises:
        HTTPException: If the token is no longer valid.
    """
    caller_id = token_payload["sub"]
    if not identity_provider.is_token_current(caller_id, token_payload.get("ver", 0)):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session has been revoked",
        )
    return Caller(
        caller_id=caller_id,
        email=token_payload.get("email") or "",
        claims=token_payload,
    )


@router.post("/register", summary="Register an identity")
def register(
    req: RegisterRequest,
    identity_provider: IdentityProviderDep = None,
) -> dict:
    """Register a new identity.

    The identity starts with a STUDENT profile; higher roles are granted
    through invites or elevation requests.

    Args:
        req: Registration request with email, password and display name.
        identity_provider: Injected IdentityProvider instance.

    Returns:
        Dictionary with success message and user_id.
    """
    identity = identity_provider.create_identity(
        email=req.email,
        password=req.password,
        display_name=req.display_name,
    )
    return {
        "success": True,
        "message": "Identity registered successfully",
        "user_id": identity.uid,
    }


@router.post("/login", response_model=LoginResponse, summary="Log in")
def login(
    req: LoginRequest,
    identity_provider: IdentityProviderDep = None,
) -> LoginResponse:
    """Log in with email and password.

    Args:
        req: Login request with email and password.
        identity_provider: Injected IdentityProvider instance.

    Returns:
        LoginResponse with the identity and a JWT token.
    """
    identity = identity_provider.authenticate(req.email, req.password)
    token = create_access_token(
        data={
            "sub": identity.uid,
            "email": identity.email,
            "ver": identity.token_version or 0,
        }
    )
    return LoginResponse(user_id=identity.uid, email=identity.email, token=token)


@router.get("/me", response_model=CurrentUserResponse, summary="Current caller")
def get_current_caller_info(
    caller: Caller = Depends(get_current_caller),
    profile_manager: ProfileManagerDep = None,
) -> CurrentUserResponse:
    """Get the authenticated caller and its profile, if one exists."""
    try:
        profile = profile_manager.get_profile(caller.caller_id)
    except NotFoundError:
        profile = None
    return CurrentUserResponse(
        caller_id=caller.caller_id, email=caller.email, profile=profile
    )


@router.post("/revoke-sessions", summary="Revoke an identity's sessions")
def revoke_sessions(
    req: RevokeSessionsRequest,
    caller: Caller = Depends(get_current_caller),
    identity_provider: IdentityProviderDep = None,
) -> dict:
    """Invalidate every token issued to ``req.uid``.

    Permission requirements:
    - ``revoke_session`` (ADMIN by default)
    """
    identity_provider.revoke_tokens(caller.caller_id, req.uid)
    return {"success": True}
