"""
Order Service Event Models

Pydantic models for events published by order service
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OrderCompletedEvent(BaseModel):
    """Event published when an order has been completed at checkout"""
    order_id: str
    customer_email: str
    order_status: str
    payment_method: str
    total_amount: float
    currency: str = "INR"
    digital_items: int = 0
    physical_items: int = 0
    waybill: Optional[str] = None
    timestamp: datetime = Field(default_factory=_now)


class DownloadLinksIssuedEvent(BaseModel):
    """Event published when download links are issued for digital items"""
    order_id: str
    item_ids: List[str]
    expires_at: datetime
    timestamp: datetime = Field(default_factory=_now)


class NotificationFailedEvent(BaseModel):
    """Event published when a customer or operator notification could not be sent"""
    kind: str
    recipient: str
    reference_id: str
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=_now)
