"""
Order Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

# Import only models (no I/O dependencies)
from core.notification_client import NotificationResult
from microservices.shipping_service.models import ShipmentCreateRequest, ShipmentResponse

from .models import Order, OrderFilter


# ============================================================================
# Custom Exceptions - defined here to avoid importing repository
# ============================================================================

class OrderServiceError(Exception):
    """Base exception for order service errors"""
    pass


class OrderValidationError(OrderServiceError):
    """Order validation error"""
    pass


class OrderNotFoundError(OrderServiceError):
    """Order not found error"""
    pass


# ============================================================================
# Repository Protocol
# ============================================================================

@runtime_checkable
class OrderRepositoryProtocol(Protocol):
    """
    Interface for Order Repository.

    Implementations must provide these methods.
    Used for dependency injection to enable testing.
    """

    async def create_order(self, order: Order) -> Order:
        """Persist an order and its items atomically"""
        ...

    async def get_order(self, order_id: str) -> Optional[Order]:
        """Get order with items"""
        ...

    async def list_orders(self, filter_params: OrderFilter) -> List[Order]:
        """List orders with filtering"""
        ...

    async def update_order_fields(self, order_id: str, fields: Dict[str, Any]) -> Optional[Order]:
        """Update only the given columns"""
        ...

    async def mark_item_returned(self, order_id: str, item_id: str) -> bool:
        """Set the returned marker on an order item"""
        ...

    async def increment_download_count(self, product_id: str, quantity: int = 1) -> None:
        """Bump a product's download counter"""
        ...


# ============================================================================
# Collaborator Protocols
# ============================================================================

@runtime_checkable
class ShipmentCreatorProtocol(Protocol):
    """Creates and records forward shipments (shipping service)"""

    async def create_shipment(self, request: ShipmentCreateRequest) -> ShipmentResponse:
        ...


@runtime_checkable
class NotificationClientProtocol(Protocol):
    """Interface for the notification collaborator"""

    async def notify(self, kind: str, recipient: str, template_data: Dict[str, Any]) -> NotificationResult:
        ...


@runtime_checkable
class EventBusProtocol(Protocol):
    """Interface for Event Bus - no I/O imports"""

    async def publish_event(self, event: Any) -> None:
        """Publish an event"""
        ...
