"""
Return Service Event Publishers

Functions to publish events from return service
"""

import logging
from typing import Optional

from core.event_bus import Event, EventType, ServiceSource

from .models import (
    ReturnPickupCancelledEvent,
    ReturnPickupScheduledEvent,
    ReturnRequestedEvent,
    ReturnStatusChangedEvent,
)

logger = logging.getLogger(__name__)


async def publish_return_requested(
    event_bus,
    return_id: str,
    order_id: str,
    order_item_id: str,
    product_id: str,
    requested_by: str,
    reason: str,
) -> bool:
    """Publish return.requested event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping return.requested event")
        return False

    try:
        event_data = ReturnRequestedEvent(
            return_id=return_id,
            order_id=order_id,
            order_item_id=order_item_id,
            product_id=product_id,
            requested_by=requested_by,
            reason=reason,
        )
        event = Event(
            event_type=EventType.RETURN_REQUESTED,
            source=ServiceSource.RETURN_SERVICE,
            data=event_data.model_dump(mode="json"),
            subject=return_id,
        )
        await event_bus.publish_event(event)
        logger.info(f"Published return.requested event for return {return_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish return.requested event: {e}")
        return False


async def publish_return_status_changed(
    event_bus,
    return_id: str,
    order_id: str,
    old_status: str,
    new_status: str,
    source: str = "operator",
) -> bool:
    """Publish return.status_changed event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping return.status_changed event")
        return False

    try:
        event_data = ReturnStatusChangedEvent(
            return_id=return_id,
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            source=source,
        )
        event = Event(
            event_type=EventType.RETURN_STATUS_CHANGED,
            source=ServiceSource.RETURN_SERVICE,
            data=event_data.model_dump(mode="json"),
            subject=return_id,
        )
        await event_bus.publish_event(event)
        logger.info(f"Published return.status_changed event for return {return_id}: {old_status} -> {new_status}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish return.status_changed event: {e}")
        return False


async def publish_return_pickup_scheduled(
    event_bus,
    return_id: str,
    tracking_number: str,
    pickup_id: Optional[str] = None,
    pickup_date: Optional[str] = None,
    pickup_time_slot: Optional[str] = None,
) -> bool:
    """Publish return.pickup_scheduled event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping return.pickup_scheduled event")
        return False

    try:
        event_data = ReturnPickupScheduledEvent(
            return_id=return_id,
            tracking_number=tracking_number,
            pickup_id=pickup_id,
            pickup_date=pickup_date,
            pickup_time_slot=pickup_time_slot,
        )
        event = Event(
            event_type=EventType.RETURN_PICKUP_SCHEDULED,
            source=ServiceSource.RETURN_SERVICE,
            data=event_data.model_dump(mode="json"),
            subject=return_id,
        )
        await event_bus.publish_event(event)
        logger.info(f"Published return.pickup_scheduled event for return {return_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish return.pickup_scheduled event: {e}")
        return False


async def publish_return_pickup_cancelled(event_bus, return_id: str, tracking_number: str) -> bool:
    """Publish return.pickup_cancelled event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping return.pickup_cancelled event")
        return False

    try:
        event_data = ReturnPickupCancelledEvent(return_id=return_id, tracking_number=tracking_number)
        event = Event(
            event_type=EventType.RETURN_PICKUP_CANCELLED,
            source=ServiceSource.RETURN_SERVICE,
            data=event_data.model_dump(mode="json"),
            subject=return_id,
        )
        await event_bus.publish_event(event)
        logger.info(f"Published return.pickup_cancelled event for return {return_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish return.pickup_cancelled event: {e}")
        return False
