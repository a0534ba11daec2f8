"""
Order Service Event Publishers

Functions to publish events from order service
"""

import logging
from datetime import datetime
from typing import List, Optional

from core.event_bus import Event, EventType, ServiceSource

from .models import DownloadLinksIssuedEvent, NotificationFailedEvent, OrderCompletedEvent

logger = logging.getLogger(__name__)


async def publish_order_completed(
    event_bus,
    order_id: str,
    customer_email: str,
    order_status: str,
    payment_method: str,
    total_amount: float,
    currency: str = "INR",
    digital_items: int = 0,
    physical_items: int = 0,
    waybill: Optional[str] = None,
) -> bool:
    """Publish order.completed event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping order.completed event")
        return False

    try:
        event_data = OrderCompletedEvent(
            order_id=order_id,
            customer_email=customer_email,
            order_status=order_status,
            payment_method=payment_method,
            total_amount=total_amount,
            currency=currency,
            digital_items=digital_items,
            physical_items=physical_items,
            waybill=waybill,
        )
        event = Event(
            event_type=EventType.ORDER_COMPLETED,
            source=ServiceSource.ORDER_SERVICE,
            data=event_data.model_dump(mode="json"),
            subject=order_id,
        )
        await event_bus.publish_event(event)
        logger.info(f"Published order.completed event for order {order_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish order.completed event: {e}")
        return False


async def publish_download_links_issued(
    event_bus,
    order_id: str,
    item_ids: List[str],
    expires_at: datetime,
) -> bool:
    """Publish order.download_links_issued event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping order.download_links_issued event")
        return False

    try:
        event_data = DownloadLinksIssuedEvent(order_id=order_id, item_ids=item_ids, expires_at=expires_at)
        event = Event(
            event_type=EventType.DOWNLOAD_LINKS_ISSUED,
            source=ServiceSource.ORDER_SERVICE,
            data=event_data.model_dump(mode="json"),
            subject=order_id,
        )
        await event_bus.publish_event(event)
        logger.info(f"Published order.download_links_issued event for order {order_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish order.download_links_issued event: {e}")
        return False


async def publish_notification_failed(
    event_bus,
    kind: str,
    recipient: str,
    reference_id: str,
    error: Optional[str] = None,
    source: ServiceSource = ServiceSource.ORDER_SERVICE,
) -> bool:
    """Publish notification.failed event"""
    if not event_bus:
        logger.warning("Event bus not available, skipping notification.failed event")
        return False

    try:
        event_data = NotificationFailedEvent(kind=kind, recipient=recipient, reference_id=reference_id, error=error)
        event = Event(
            event_type=EventType.NOTIFICATION_FAILED,
            source=source,
            data=event_data.model_dump(mode="json"),
            subject=reference_id,
        )
        await event_bus.publish_event(event)
        logger.info(f"Published notification.failed event for {kind} ({reference_id})")
        return True

    except Exception as e:
        logger.error(f"Failed to publish notification.failed event: {e}")
        return False
