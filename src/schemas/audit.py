"""Audit event schema definitions."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AuditEvent(BaseModel):
    id: int
    actor_id: str
    action: str
    target_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: str


class AuditEventListResponse(BaseModel):
    events: List[AuditEvent]
