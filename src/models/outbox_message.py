"""Outbox message database model."""

from sqlalchemy import Boolean, Column, Integer, JSON, String, Text
from .base import Base


class OutboxMessageModel(Base):
    """Durable notification intent, delivered later by the outbox relay."""

    __tablename__ = "email_outbox"

    message_id = Column(String, primary_key=True, index=True)
    recipient = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    body = Column(Text, nullable=False, default="")
    meta_info = Column(JSON, default=dict)
    status = Column(String, index=True, nullable=False, default="pending")
    sent = Column(Boolean, index=True, nullable=False, default=False)
    logged = Column(Boolean, nullable=False, default=False)
    provider = Column(String, nullable=True)
    last_error = Column(Text, nullable=True)
    attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(String, index=True, nullable=False)
    attempted_at = Column(String, nullable=True)
    sent_at = Column(String, nullable=True)
    logged_at = Column(String, nullable=True)
