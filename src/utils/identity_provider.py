"""Local identity provider.

This module stores login identities with bcrypt password hashes, verifies
credentials, and revokes outstanding sessions. Role and scope live on the
caller profile, which is created for every new identity.
"""

import logging
import uuid
from typing import Optional

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import BCRYPT_ROUNDS
from core.exceptions import (
    AlreadyExistsError,
    InvalidArgumentError,
    NotFoundError,
    UnauthenticatedError,
)
from models.identity import IdentityModel
from utils.clock import utc_now_iso
from utils.gated_mutation import GatedMutationExecutor, MutationResult
from utils.invite_manager import EMAIL_PATTERN
from utils.profile_manager import ProfileManager

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password.

    Returns:
        Hashed password (bcrypt hash string).
    """
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        logger.warning("Password exceeds %d bytes, truncating", BCRYPT_MAX_BYTES)
        password_bytes = password_bytes[:BCRYPT_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash.

    Returns:
        True if password matches, False otherwise.
    """
    password_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.error("Password verification error: %s", e)
        return False


class IdentityProvider:
    """Manages login identities using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize IdentityProvider.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db
        self.profiles = ProfileManager(db)

    def get_identity(self, uid: str) -> Optional[IdentityModel]:
        if not uid:
            return None
        return self.db.query(IdentityModel).filter(IdentityModel.uid == uid).first()

    def get_identity_by_email(self, email: str) -> Optional[IdentityModel]:
        email = (email or "").strip().lower()
        return self.db.query(IdentityModel).filter(IdentityModel.email == email).first()

    def create_identity(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> IdentityModel:
        """Create a new identity and its caller profile.

        Args:
            email: Login email, stored lower-cased.
            password: Plain text password.
            display_name: Optional display name.

        Returns:
            The created IdentityModel.

        Raises:
            InvalidArgumentError: If the email is malformed.
            AlreadyExistsError: If the email is already registered.
        """
        email = (email or "").strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise InvalidArgumentError("A valid email is required")
        if self.get_identity_by_email(email) is not None:
            raise AlreadyExistsError(f"Identity '{email}' already exists")

        model = IdentityModel(
            uid=uuid.uuid4().hex,
            email=email,
            password_hash=hash_password(password),
            display_name=display_name,
            disabled=False,
            token_version=0,
            created_at=utc_now_iso(),
        )
        # Two concurrent sign-ups can both pass the check above; the unique
        # constraint decides
        try:
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        except IntegrityError as e:
            self.db.rollback()
            raise AlreadyExistsError(f"Identity '{email}' already exists") from e

        logger.info("Created identity uid=%s", model.uid)
        self.profiles.ensure_profile(model.uid, email=email, display_name=display_name)
        return model

    def authenticate(self, email: str, password: str) -> IdentityModel:
        """Verify credentials.

        Raises:
            UnauthenticatedError: If the credentials are wrong or the identity
                is disabled.
        """
        model = self.get_identity_by_email(email)
        if model is None or not verify_password(password, model.password_hash):
            raise UnauthenticatedError("Invalid email or password")
        if model.disabled:
            raise UnauthenticatedError("Identity is disabled")
        return model

    def update_identity(
        self,
        uid: str,
        display_name: Optional[str] = None,
        disabled: Optional[bool] = None,
    ) -> IdentityModel:
        model = self.get_identity(uid)
        if model is None:
            raise NotFoundError(f"Identity '{uid}' not found")
        if display_name is not None:
            model.display_name = display_name
        if disabled is not None:
            model.disabled = disabled
        self.db.commit()
        self.db.refresh(model)
        return model

    def is_token_current(self, uid: str, token_version: int) -> bool:
        """Check a session token against the identity's revocation state.

        Callers without a local identity are accepted; their tokens were
        minted by an external provider.
        """
        model = self.get_identity(uid)
        if model is None:
            return True
        if model.disabled:
            return False
        return int(token_version or 0) >= int(model.token_version or 0)

    def revoke_tokens(self, caller_id: Optional[str], uid: str) -> bool:
        """Invalidate every session token issued to ``uid`` so far.

        Raises:
            UnauthenticatedError: If ``caller_id`` is empty.
            PermissionDeniedError: If the caller lacks ``revoke_session``.
            InvalidArgumentError: If ``uid`` is empty.
            NotFoundError: If the identity does not exist.
        """

        def mutation(db, caller):
            if not uid:
                raise InvalidArgumentError("uid is required")
            model = db.query(IdentityModel).filter(IdentityModel.uid == uid).first()
            if model is None:
                raise NotFoundError(f"Identity '{uid}' not found")
            model.token_version = int(model.token_version or 0) + 1
            model.tokens_revoked_at = utc_now_iso()
            return MutationResult(value=True)

        return GatedMutationExecutor(self.db).execute(
            caller_id,
            "revoke_session",
            mutation,
            "revoke_user_session",
            target_id=uid,
        )
