"""
Return Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

# Import only models (no I/O dependencies)
from core.notification_client import NotificationResult
from microservices.order_service.models import Order
from microservices.shipping_service.carrier.models import CarrierResponse, ReversePickupRequest
from microservices.shipping_service.models import Warehouse

from .models import ReturnFilter, ReturnRequest, ReturnStatus, ReturnTrackingEvent


# ============================================================================
# Custom Exceptions - defined here to avoid importing repository
# ============================================================================

class ReturnServiceError(Exception):
    """Base exception for return service errors"""
    pass


class ReturnNotFoundError(ReturnServiceError):
    """Return request not found"""
    pass


class InvalidReturnTransitionError(ReturnServiceError):
    """Status change not allowed from the current status"""
    pass


class ReturnNotEligibleError(ReturnServiceError):
    """Order item cannot be returned"""
    pass


class DuplicateReturnError(ReturnNotEligibleError):
    """An active return already exists for the order item"""
    pass


# ============================================================================
# Repository Protocol
# ============================================================================

@runtime_checkable
class ReturnRepositoryProtocol(Protocol):
    """
    Interface for Return Repository.

    create_return raises DuplicateReturnError when an active return
    already exists for the same order item.
    """

    async def create_return(self, return_request: ReturnRequest) -> ReturnRequest:
        ...

    async def get_return(self, return_id: str) -> Optional[ReturnRequest]:
        ...

    async def get_return_by_tracking_number(self, tracking_number: str) -> Optional[ReturnRequest]:
        ...

    async def find_active_return(self, order_id: str, order_item_id: str) -> Optional[ReturnRequest]:
        ...

    async def list_returns(self, filter_params: ReturnFilter) -> List[ReturnRequest]:
        ...

    async def update_return_fields(
        self,
        return_id: str,
        fields: Dict[str, Any],
        expected_status: Optional[ReturnStatus] = None,
    ) -> Optional[ReturnRequest]:
        """Update only the given columns; None when the return is gone or no longer in expected_status"""
        ...

    async def append_tracking_events(self, return_id: str, events: List[ReturnTrackingEvent]) -> Optional[ReturnRequest]:
        ...


# ============================================================================
# Collaborator Protocols
# ============================================================================

@runtime_checkable
class OrderReaderProtocol(Protocol):
    """Order access needed by the return workflow"""

    async def get_order(self, order_id: str) -> Optional[Order]:
        ...

    async def mark_item_returned(self, order_id: str, item_id: str) -> bool:
        ...


@runtime_checkable
class WarehouseLookupProtocol(Protocol):
    """Resolves the warehouse returned items are sent to"""

    async def get_default_warehouse(self) -> Optional[Warehouse]:
        ...


@runtime_checkable
class ReverseLogisticsGatewayProtocol(Protocol):
    """Reverse pickup capabilities of the carrier gateway"""

    async def schedule_reverse_pickup(self, request: ReversePickupRequest) -> CarrierResponse:
        ...

    async def track_reverse_pickup(self, tracking_number: str) -> CarrierResponse:
        ...

    async def cancel_reverse_pickup(self, tracking_number: str) -> CarrierResponse:
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
