"""Identity database model.

Identities belong to the local identity provider: they hold login
credentials, while caller profiles (``users``) hold role and scope.
"""

from sqlalchemy import Boolean, Column, Integer, String
from .base import Base


class IdentityModel(Base):
    """Identity provider account."""

    __tablename__ = "identities"

    uid = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    display_name = Column(String, nullable=True)
    disabled = Column(Boolean, nullable=False, default=False)
    # Access tokens carrying an older version are rejected
    token_version = Column(Integer, nullable=False, default=0)
    tokens_revoked_at = Column(String, nullable=True)
    created_at = Column(String, nullable=False)
