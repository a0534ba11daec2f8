"""
Shipping Service Event Publishers

Functions to publish events from shipping service
"""

import logging
from typing import Optional

from core.event_bus import Event, EventType, ServiceSource

from .models import (
    PickupRequestedEvent,
    ShipmentCreatedEvent,
    ShipmentLocalFallbackEvent,
    ShipmentStatusChangedEvent,
)

logger = logging.getLogger(__name__)


async def publish_shipment_created(
    event_bus,
    shipment_id: str,
    waybill: str,
    waybill_source: str,
    payment_mode: str,
    order_id: Optional[str] = None,
    warehouse_id: Optional[str] = None,
) -> bool:
    """Publish shipment.created event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping shipment.created event")
        return False

    try:
        event_data = ShipmentCreatedEvent(
            shipment_id=shipment_id,
            waybill=waybill,
            waybill_source=waybill_source,
            order_id=order_id,
            warehouse_id=warehouse_id,
            payment_mode=payment_mode,
        )
        event = Event(
            event_type=EventType.SHIPMENT_CREATED,
            source=ServiceSource.SHIPPING_SERVICE,
            data=event_data.model_dump(mode="json"),
            subject=waybill,
        )
        await event_bus.publish_event(event)
        logger.info(f"Published shipment.created event for waybill {waybill}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish shipment.created event: {e}")
        return False


async def publish_shipment_local_fallback(
    event_bus,
    waybill: str,
    carrier_outcome: str,
    carrier_error: Optional[str] = None,
    order_id: Optional[str] = None,
) -> bool:
    """Publish shipment.local_fallback event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping shipment.local_fallback event")
        return False

    try:
        event_data = ShipmentLocalFallbackEvent(
            waybill=waybill,
            order_id=order_id,
            carrier_outcome=carrier_outcome,
            carrier_error=carrier_error,
        )
        event = Event(
            event_type=EventType.SHIPMENT_LOCAL_FALLBACK,
            source=ServiceSource.SHIPPING_SERVICE,
            data=event_data.model_dump(mode="json"),
            subject=waybill,
        )
        await event_bus.publish_event(event)
        logger.info(f"Published shipment.local_fallback event for waybill {waybill}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish shipment.local_fallback event: {e}")
        return False


async def publish_shipment_status_changed(
    event_bus,
    waybill: str,
    old_status: str,
    new_status: str,
    order_id: Optional[str] = None,
    source: str = "operator",
) -> bool:
    """Publish shipment.status_changed event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping shipment.status_changed event")
        return False

    try:
        event_data = ShipmentStatusChangedEvent(
            waybill=waybill,
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            source=source,
        )
        event = Event(
            event_type=EventType.SHIPMENT_STATUS_CHANGED,
            source=ServiceSource.SHIPPING_SERVICE,
            data=event_data.model_dump(mode="json"),
            subject=waybill,
        )
        await event_bus.publish_event(event)
        logger.info(f"Published shipment.status_changed event for waybill {waybill}: {old_status} -> {new_status}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish shipment.status_changed event: {e}")
        return False


async def publish_pickup_requested(
    event_bus,
    warehouse_id: str,
    warehouse_name: str,
    pickup_date: str,
    expected_package_count: int,
    pickup_id: Optional[str] = None,
) -> bool:
    """Publish shipment.pickup_requested event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping shipment.pickup_requested event")
        return False

    try:
        event_data = PickupRequestedEvent(
            warehouse_id=warehouse_id,
            warehouse_name=warehouse_name,
            pickup_id=pickup_id,
            pickup_date=pickup_date,
            expected_package_count=expected_package_count,
        )
        event = Event(
            event_type=EventType.PICKUP_REQUESTED,
            source=ServiceSource.SHIPPING_SERVICE,
            data=event_data.model_dump(mode="json"),
            subject=warehouse_id,
        )
        await event_bus.publish_event(event)
        logger.info(f"Published shipment.pickup_requested event for warehouse {warehouse_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish shipment.pickup_requested event: {e}")
        return False
