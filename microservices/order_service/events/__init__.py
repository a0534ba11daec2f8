"""
Order Service Events Module

Exports all event-related functionality for order service
"""

from .handlers import get_event_handlers, register_event_handlers
from .models import DownloadLinksIssuedEvent, NotificationFailedEvent, OrderCompletedEvent
from .publishers import publish_download_links_issued, publish_notification_failed, publish_order_completed

__all__ = [
    # Event Models
    "DownloadLinksIssuedEvent",
    "NotificationFailedEvent",
    "OrderCompletedEvent",
    # Publishers
    "publish_download_links_issued",
    "publish_notification_failed",
    "publish_order_completed",
    # Handlers
    "get_event_handlers",
    "register_event_handlers",
]
