"""
Order Service Event Handlers

Per-request subscribers. The HTTP layer registers these on the request's
event bus so the response can report what happened during fulfillment.
"""

import logging
from typing import Callable, Dict, List

from core.event_bus import Event

logger = logging.getLogger(__name__)


def get_event_handlers(collected: List[str]) -> Dict[str, Callable]:
    """
    Handlers keyed by event type pattern.

    Args:
        collected: Receives the type of every event published
    """

    def collect(event: Event) -> None:
        collected.append(event.type)

    def local_fallback(event: Event) -> None:
        logger.warning(
            f"Order {event.data.get('order_id')} shipped under local waybill {event.data.get('waybill')} "
            f"({event.data.get('carrier_outcome')})"
        )

    def notification_failed(event: Event) -> None:
        logger.warning(f"{event.data.get('kind')} notification to {event.data.get('recipient')} was not sent")

    return {
        "*": collect,
        "shipment.local_fallback": local_fallback,
        "notification.failed": notification_failed,
    }


def register_event_handlers(event_bus, collected: List[str]) -> None:
    """Attach the order handlers to a request-scoped bus"""
    for pattern, handler in get_event_handlers(collected).items():
        event_bus.subscribe_to_events(pattern, handler)
