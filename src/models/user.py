"""Caller profile database model.

This module defines the caller profile (``users`` table) using SQLAlchemy.
Profiles are soft-deactivated, never deleted.
"""

from sqlalchemy import Boolean, Column, JSON, String
from .base import Base


class UserModel(Base):
    """Caller profile database model."""

    __tablename__ = "users"

    user_id = Column(String, primary_key=True, index=True)
    email = Column(String, index=True, nullable=True)  # lower-cased
    display_name = Column(String, nullable=True)
    role = Column(String, nullable=False)  # 'STUDENT', 'CR', 'CC', 'HOD' or 'ADMIN'
    permissions = Column(JSON, default=list)
    allowed_scopes = Column(JSON, default=list)  # class identifiers, e.g. '2CEIT-B'
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(String, nullable=False)  # ISO format string
    updated_at = Column(String, nullable=False)  # ISO format string
