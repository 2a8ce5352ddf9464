"""Outbox relay routes.

Delivery is batch-driven: an operator or a scheduler calls the drain
endpoint; nothing is sent inline with the request that queued the message.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends

from api.routes.auth import get_current_caller
from core.dependencies import OutboxRelayDep, PermissionOracleDep
from schemas.outbox import DrainOutboxRequest, DrainOutboxResponse
from schemas.user import Caller

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/outbox", tags=["Outbox"])


@router.post("/drain", response_model=DrainOutboxResponse, summary="Deliver pending messages")
def drain_outbox(
    req: Optional[DrainOutboxRequest] = Body(default=None),
    caller: Caller = Depends(get_current_caller),
    oracle: PermissionOracleDep = None,
    relay: OutboxRelayDep = None,
) -> DrainOutboxResponse:
    """Deliver up to ``limit`` pending messages, oldest first.

    Permission requirements:
    - ``send_pending_emails`` (HOD / ADMIN by default)
    """
    oracle.require(caller.caller_id, "send_pending_emails")
    limit = req.limit if req else None
    logger.info("Outbox drain requested by %s (limit=%s)", caller.caller_id, limit)
    return relay.drain(limit)
