"""
Return Service Event Models

Pydantic models for events published by return service
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ReturnRequestedEvent(BaseModel):
    """Event published when a customer opens a return request"""
    return_id: str
    order_id: str
    order_item_id: str
    product_id: str
    requested_by: str
    reason: str
    timestamp: datetime = Field(default_factory=_now)


class ReturnStatusChangedEvent(BaseModel):
    """Event published when a return request changes status"""
    return_id: str
    order_id: str
    old_status: str
    new_status: str
    source: str = "operator"
    timestamp: datetime = Field(default_factory=_now)


class ReturnPickupScheduledEvent(BaseModel):
    """Event published when the carrier accepts a reverse pickup"""
    return_id: str
    tracking_number: str
    pickup_id: Optional[str] = None
    pickup_date: Optional[str] = None
    pickup_time_slot: Optional[str] = None
    timestamp: datetime = Field(default_factory=_now)


class ReturnPickupCancelledEvent(BaseModel):
    """Event published when a reverse pickup is cancelled at the carrier"""
    return_id: str
    tracking_number: str
    timestamp: datetime = Field(default_factory=_now)
