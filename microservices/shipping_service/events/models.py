"""
Shipping Service Event Models

Pydantic models for events published by shipping service
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ShipmentCreatedEvent(BaseModel):
    """Event published when a shipment is recorded in the ledger"""
    shipment_id: str
    waybill: str
    waybill_source: str
    order_id: Optional[str] = None
    warehouse_id: Optional[str] = None
    payment_mode: str
    timestamp: datetime = Field(default_factory=_now)


class ShipmentLocalFallbackEvent(BaseModel):
    """Event published when the carrier did not confirm a shipment"""
    waybill: str
    order_id: Optional[str] = None
    carrier_outcome: str
    carrier_error: Optional[str] = None
    timestamp: datetime = Field(default_factory=_now)


class ShipmentStatusChangedEvent(BaseModel):
    """Event published when a shipment changes status"""
    waybill: str
    order_id: Optional[str] = None
    old_status: str
    new_status: str
    source: str = "operator"
    timestamp: datetime = Field(default_factory=_now)


class PickupRequestedEvent(BaseModel):
    """Event published when a warehouse pickup is accepted by the carrier"""
    warehouse_id: str
    warehouse_name: str
    pickup_id: Optional[str] = None
    pickup_date: str
    expected_package_count: int
    timestamp: datetime = Field(default_factory=_now)
