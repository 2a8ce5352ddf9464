"""Invite database model.

Only the SHA-256 digest of the bearer token is stored. Invites are retained
after use or revocation for audit purposes.
"""

from sqlalchemy import Boolean, Column, JSON, String
from .base import Base


class InviteModel(Base):
    """Invite database model."""

    __tablename__ = "invites"

    invite_id = Column(String, primary_key=True, index=True)
    token_hash = Column(String, unique=True, index=True, nullable=False)
    invited_email = Column(String, nullable=True)
    role = Column(String, nullable=False)
    allowed_scopes = Column(JSON, default=list)
    expires_at = Column(String, nullable=False)  # ISO format string
    used = Column(Boolean, nullable=False, default=False)
    revoked = Column(Boolean, nullable=False, default=False)
    created_by = Column(String, index=True, nullable=False)  # user_id
    created_at = Column(String, index=True, nullable=False)
    used_by = Column(String, nullable=True)
    used_at = Column(String, nullable=True)
    revoked_by = Column(String, nullable=True)
    revoked_at = Column(String, nullable=True)
