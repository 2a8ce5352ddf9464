"""Audit event database model.

Audit rows are append-only: nothing in the service updates or deletes them.
"""

from sqlalchemy import Column, Integer, JSON, String
from .base import Base


class AuditEventModel(Base):
    """Append-only audit log entry."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    actor_id = Column(String, index=True, nullable=False)
    action = Column(String, index=True, nullable=False)
    target_id = Column(String, index=True, nullable=True)
    details = Column(JSON, default=dict)
    timestamp = Column(String, nullable=False)  # ISO format string
