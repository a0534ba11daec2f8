"""
Request-Scoped Event Bus

In-process event bus created per request (or per workflow invocation).
Subscribers are attached to a bus instance, never to a module-level
registry, so listeners from one request cannot observe another.

Usage:
    bus = RequestEventBus()
    bus.subscribe_to_events("shipment.*", handler)
    await bus.publish_event(Event(EventType.SHIPMENT_CREATED, ServiceSource.ORDER_SERVICE, {...}))
"""

import fnmatch
import inspect
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Fulfillment event types"""

    # Order Events
    ORDER_COMPLETED = "order.completed"
    DOWNLOAD_LINKS_ISSUED = "order.download_links_issued"

    # Shipment Events
    SHIPMENT_CREATED = "shipment.created"
    SHIPMENT_LOCAL_FALLBACK = "shipment.local_fallback"
    SHIPMENT_STATUS_CHANGED = "shipment.status_changed"
    PICKUP_REQUESTED = "shipment.pickup_requested"

    # Return Events
    RETURN_REQUESTED = "return.requested"
    RETURN_STATUS_CHANGED = "return.status_changed"
    RETURN_PICKUP_SCHEDULED = "return.pickup_scheduled"
    RETURN_PICKUP_CANCELLED = "return.pickup_cancelled"

    # Notification Events
    NOTIFICATION_FAILED = "notification.failed"


class ServiceSource(Enum):
    """Services that publish events"""

    ORDER_SERVICE = "order_service"
    SHIPPING_SERVICE = "shipping_service"
    RETURN_SERVICE = "return_service"


class Event:
    """Event model"""

    def __init__(
        self,
        event_type: EventType,
        source: ServiceSource,
        data: Dict[str, Any],
        subject: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ):
        self.id = str(uuid.uuid4())
        self.type = event_type.value
        self.source = source.value
        self.data = data
        self.subject = subject
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.metadata = metadata or {}
        self.version = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "subject": self.subject,
            "timestamp": self.timestamp,
            "data": self.data,
            "metadata": self.metadata,
            "version": self.version,
        }


class RequestEventBus:
    """
    Synchronous in-process event bus scoped to one request.

    Handlers may be plain callables or coroutine functions. A failing
    handler is logged and does not stop delivery to the others, nor does
    it fail the publishing operation.
    """

    def __init__(self):
        self._subscriptions: List[Tuple[str, Callable]] = []
        self.published_events: List[Event] = []

    def subscribe_to_events(self, pattern: str, handler: Callable) -> None:
        """Attach a handler for event types matching a glob pattern (e.g. "return.*")"""
        self._subscriptions.append((pattern, handler))

    async def publish_event(self, event: Event) -> bool:
        """Record the event and deliver it to matching subscribers"""
        self.published_events.append(event)
        for pattern, handler in self._subscriptions:
            if not fnmatch.fnmatch(event.type, pattern):
                continue
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Event handler for {pattern} failed on {event.type}: {e}")
        return True

    def events_of_type(self, event_type: EventType) -> List[Event]:
        return [e for e in self.published_events if e.type == event_type.value]

    async def close(self):
        self._subscriptions.clear()


__all__ = ["Event", "EventType", "ServiceSource", "RequestEventBus"]
