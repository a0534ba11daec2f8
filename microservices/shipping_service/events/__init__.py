"""
Shipping Service Events Module

Exports all event-related functionality for shipping service
"""

from .models import (
    PickupRequestedEvent,
    ShipmentCreatedEvent,
    ShipmentLocalFallbackEvent,
    ShipmentStatusChangedEvent,
)
from .publishers import (
    publish_pickup_requested,
    publish_shipment_created,
    publish_shipment_local_fallback,
    publish_shipment_status_changed,
)

__all__ = [
    # Event Models
    "PickupRequestedEvent",
    "ShipmentCreatedEvent",
    "ShipmentLocalFallbackEvent",
    "ShipmentStatusChangedEvent",
    # Publishers
    "publish_pickup_requested",
    "publish_shipment_created",
    "publish_shipment_local_fallback",
    "publish_shipment_status_changed",
]
