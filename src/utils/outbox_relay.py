"""Notification outbox.

Flows that need to notify someone enqueue a message in the same transaction
as their mutation. The relay delivers pending messages later, one commit per
message, so a failed delivery never affects the rest of the batch.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import OUTBOX_DEFAULT_LIMIT, OUTBOX_MAX_LIMIT
from core.exceptions import InternalError
from models.outbox_message import OutboxMessageModel
from schemas.outbox import DeliveryResult, DrainOutboxResponse
from utils.clock import utc_now_iso
from utils.mail_transport import MailTransport

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_SENT = "sent"
STATUS_LOGGED = "logged"
STATUS_ERROR = "error"
# Claimed by a drain; the send is in flight
STATUS_SENDING = "sending"

# States the relay picks up again
RETRYABLE_STATUSES = (STATUS_PENDING, STATUS_ERROR)


def normalize_limit(limit: Optional[int]) -> int:
    """Default missing or non-positive limits and cap large ones."""
    if not limit or limit <= 0:
        return OUTBOX_DEFAULT_LIMIT
    return min(limit, OUTBOX_MAX_LIMIT)


class OutboxRelay:
    """Enqueues and delivers outbox messages."""

    def __init__(self, db: Session, transport: Optional[MailTransport] = None):
        """Initialize OutboxRelay.

        Args:
            db: SQLAlchemy Session.
            transport: Mail transport, or None to log messages instead.
        """
        self.db = db
        self.transport = transport

    def enqueue(
        self,
        recipient: str,
        subject: str,
        body: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> OutboxMessageModel:
        """Add a pending message to the current transaction. Does not commit."""
        message = OutboxMessageModel(
            message_id=uuid.uuid4().hex,
            recipient=recipient,
            subject=subject,
            body=body,
            meta_info=dict(metadata or {}),
            status=STATUS_PENDING,
            sent=False,
            logged=False,
            attempts=0,
            created_at=utc_now_iso(),
        )
        self.db.add(message)
        return message

    def pending(self, limit: int) -> List[OutboxMessageModel]:
        return (
            self.db.query(OutboxMessageModel)
            .filter(
                OutboxMessageModel.sent.is_(False),
                OutboxMessageModel.status.in_(RETRYABLE_STATUSES),
            )
            .order_by(OutboxMessageModel.created_at.asc(), OutboxMessageModel.message_id.asc())
            .limit(limit)
            .all()
        )

    def _claim(self, message_id: str) -> bool:
        """Mark a message as being sent unless another drain got to it first.

        Commits the claim so that no lock is held while the transport runs.
        """
        claimed = (
            self.db.query(OutboxMessageModel)
            .filter(
                OutboxMessageModel.message_id == message_id,
                OutboxMessageModel.sent.is_(False),
                OutboxMessageModel.status.in_(RETRYABLE_STATUSES),
            )
            .update(
                {
                    OutboxMessageModel.status: STATUS_SENDING,
                    OutboxMessageModel.attempted_at: utc_now_iso(),
                    OutboxMessageModel.attempts: OutboxMessageModel.attempts + 1,
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        return claimed == 1

    def _deliver(self, message: OutboxMessageModel) -> DeliveryResult:
        now = utc_now_iso()

        if self.transport is None:
            logger.info(
                "Email (not sent, no transport configured): id=%s to=%s subject=%s",
                message.message_id,
                message.recipient,
                message.subject,
            )
            message.logged = True
            message.logged_at = now
            message.status = STATUS_LOGGED
            return DeliveryResult(id=message.message_id, status=STATUS_LOGGED)

        try:
            self.transport.send(message.recipient, message.subject, message.body)
        except Exception as e:
            # Any transport failure stays local to this message
            logger.error("Failed to send email %s: %s", message.message_id, e)
            message.last_error = str(e)
            message.status = STATUS_ERROR
            return DeliveryResult(id=message.message_id, status=STATUS_ERROR, error=str(e))

        message.sent = True
        message.sent_at = now
        message.provider = self.transport.provider
        message.status = STATUS_SENT
        message.last_error = None
        return DeliveryResult(id=message.message_id, status=STATUS_SENT)

    def drain(self, limit: Optional[int] = None) -> DrainOutboxResponse:
        """Deliver up to ``limit`` undelivered messages, oldest first.

        Args:
            limit: Batch size; see ``normalize_limit``.

        Returns:
            DrainOutboxResponse with the number of sent or logged messages and
            one result per attempted message.
        """
        message_ids = [m.message_id for m in self.pending(normalize_limit(limit))]
        processed = 0
        results = []
        for message_id in message_ids:
            try:
                if not self._claim(message_id):
                    logger.info("Outbox message %s already taken by another drain", message_id)
                    continue
                message = self.db.get(OutboxMessageModel, message_id)
                result = self._deliver(message)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Failed to record delivery of %s: %s", message_id, e)
                raise InternalError("Failed to record outbox delivery state") from e
            if result.status in (STATUS_SENT, STATUS_LOGGED):
                processed += 1
            results.append(result)

        if message_ids:
            logger.info("Outbox drain: %d of %d messages processed", processed, len(results))
        return DrainOutboxResponse(processed=processed, results=results)
