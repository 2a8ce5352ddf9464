"""Outbox schema definitions."""

from typing import List, Optional

from pydantic import BaseModel


class DrainOutboxRequest(BaseModel):
    limit: Optional[int] = None


class DeliveryResult(BaseModel):
    id: str
    status: str  # 'sent', 'logged' or 'error'
    error: Optional[str] = None


class DrainOutboxResponse(BaseModel):
    processed: int
    results: List[DeliveryResult]
