"""
Return Service Events

Event models and publishers for the return workflow
"""

from .models import (
    ReturnPickupCancelledEvent,
    ReturnPickupScheduledEvent,
    ReturnRequestedEvent,
    ReturnStatusChangedEvent,
)
from .publishers import (
    publish_return_pickup_cancelled,
    publish_return_pickup_scheduled,
    publish_return_requested,
    publish_return_status_changed,
)

__all__ = [
    "ReturnRequestedEvent",
    "ReturnStatusChangedEvent",
    "ReturnPickupScheduledEvent",
    "ReturnPickupCancelledEvent",
    "publish_return_requested",
    "publish_return_status_changed",
    "publish_return_pickup_scheduled",
    "publish_return_pickup_cancelled",
]
