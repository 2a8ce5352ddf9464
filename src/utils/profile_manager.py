"""Caller profile management module.

This module handles reading and upserting caller profiles. Upserts merge into
an existing profile rather than replacing it, so repeated delivery of the same
write is harmless.
"""

import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from models.user import UserModel
from schemas.user import CallerProfile, Role
from utils.clock import utc_now_iso
from utils.converters import model_to_profile
from utils.permission_oracle import clean_scopes

logger = logging.getLogger(__name__)


class ProfileManager:
    """Manages caller profile operations using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize ProfileManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def _get_model(self, user_id: str) -> Optional[UserModel]:
        return self.db.query(UserModel).filter(UserModel.user_id == user_id).first()

    def get_profile(self, user_id: str) -> CallerProfile:
        """Get a caller profile by user ID.

        Raises:
            NotFoundError: If the profile does not exist.
        """
        model = self._get_model(user_id)
        if model is None:
            raise NotFoundError(f"Profile '{user_id}' not found")
        return model_to_profile(model)

    def find_user_id_by_email(self, email: str) -> Optional[str]:
        email = (email or "").strip().lower()
        if not email:
            return None
        model = self.db.query(UserModel).filter(UserModel.email == email).first()
        return model.user_id if model else None

    def upsert_profile(
        self,
        user_id: str,
        role: Optional[str] = None,
        allowed_scopes: Optional[Iterable[str]] = None,
        permissions: Optional[Iterable[str]] = None,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> UserModel:
        """Create or merge-update a profile in the current transaction.

        Only the fields that are passed are written; everything else on an
        existing profile is preserved. Does not commit.

        Args:
            user_id: Profile to write.
            role: New role.
            allowed_scopes: Replaces the scope set.
            permissions: Added to the explicit permission set.
            email: New email (lower-cased).
            display_name: New display name.
            is_active: New active flag.

        Returns:
            The pending UserModel.
        """
        now = utc_now_iso()
        model = self._get_model(user_id)
        if model is None:
            model = UserModel(
                user_id=user_id,
                role=Role.STUDENT.value,
                permissions=[],
                allowed_scopes=[],
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            self.db.add(model)

        if role is not None:
            model.role = role
        if allowed_scopes is not None:
            model.allowed_scopes = clean_scopes(allowed_scopes)
        if permissions is not None:
            merged = list(model.permissions or [])
            for permission in permissions:
                if permission not in merged:
                    merged.append(permission)
            model.permissions = merged
        if email:
            model.email = email.strip().lower()
        if display_name:
            model.display_name = display_name
        if is_active is not None:
            model.is_active = is_active
        model.updated_at = now
        self.db.flush()
        return model

    def ensure_profile(
        self, user_id: str, email: Optional[str] = None, display_name: Optional[str] = None
    ) -> CallerProfile:
        """Create the profile for a newly signed-up identity.

        Safe to run more than once: an existing profile keeps its role, scopes
        and permissions, and only blank email or display name are filled in.

        Args:
            user_id: Identity that signed up.
            email: Email from the identity provider.
            display_name: Display name from the identity provider.

        Returns:
            The stored CallerProfile.
        """
        model = self._get_model(user_id)
        if model is None:
            model = self.upsert_profile(
                user_id,
                role=Role.STUDENT.value,
                email=email,
                display_name=display_name,
                is_active=True,
            )
            logger.info("Created profile for uid=%s", user_id)
        else:
            if email and not model.email:
                model.email = email.strip().lower()
            if display_name and not model.display_name:
                model.display_name = display_name
        self.db.commit()
        self.db.refresh(model)
        return model_to_profile(model)
