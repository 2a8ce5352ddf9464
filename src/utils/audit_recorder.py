"""Append-only audit log.

The recorder writes on the caller's session and never commits, so an audit
row is always part of the same transaction as the mutation it describes.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from models.audit_event import AuditEventModel
from utils.clock import utc_now_iso

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Writes and reads audit events."""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        actor_id: str,
        action: str,
        target_id: Optional[str],
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditEventModel:
        """Append an audit event to the current transaction.

        The row is flushed so that a failing write raises here, inside the
        enclosing unit of work, rather than at commit time.

        Args:
            actor_id: Caller that performed the action.
            action: Action tag, e.g. 'accept_invite'.
            target_id: Entity the action applied to.
            details: Arbitrary structured context.

        Returns:
            The pending AuditEventModel.
        """
        event = AuditEventModel(
            actor_id=actor_id,
            action=action,
            target_id=target_id,
            details=dict(details or {}),
            timestamp=utc_now_iso(),
        )
        self.db.add(event)
        self.db.flush()
        logger.info("Audit %s by %s on %s", action, actor_id, target_id)
        return event

    def list_events(
        self,
        limit: int,
        action: Optional[str] = None,
        target_id: Optional[str] = None,
    ) -> List[AuditEventModel]:
        query = self.db.query(AuditEventModel)
        if action:
            query = query.filter(AuditEventModel.action == action)
        if target_id:
            query = query.filter(AuditEventModel.target_id == target_id)
        return query.order_by(AuditEventModel.id.desc()).limit(limit).all()
