"""
Shipping Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from .carrier.models import (
    CarrierResponse,
    CreateShipmentRequest,
    ExpectedTatRequest,
    PickupRequest,
    RateQuoteRequest,
    ReversePickupRequest,
    WarehouseEdit,
    WarehouseRegistration,
)
from .models import Shipment, ShipmentFilter, ShipmentStats, TrackingEvent, Warehouse


# ============================================================================
# Custom Exceptions - defined here to avoid importing repository
# ============================================================================

class ShippingServiceError(Exception):
    """Base exception for shipping service errors"""
    pass


class ShipmentNotFoundError(ShippingServiceError):
    """Shipment not found in the ledger"""
    pass


class WarehouseNotFoundError(ShippingServiceError):
    """Warehouse not found in the ledger"""
    pass


class WarehouseInactiveError(ShippingServiceError):
    """Warehouse exists but is not active"""
    pass


class WarehouseInUseError(ShippingServiceError):
    """Warehouse still referenced by shipments"""
    pass


class LedgerWriteError(ShippingServiceError):
    """Ledger rejected a write"""
    pass


# ============================================================================
# Repository Protocol
# ============================================================================

@runtime_checkable
class ShipmentLedgerRepositoryProtocol(Protocol):
    """
    Interface for the shipment ledger store.

    Writes are upserts keyed by waybill (shipments) or warehouse_id
    (warehouses). Partial updates only touch the columns they name.
    """

    async def upsert_shipment(self, shipment: Shipment) -> Shipment:
        """Insert or replace a shipment keyed by waybill"""
        ...

    async def get_shipment(self, waybill: str) -> Optional[Shipment]:
        """Get shipment by waybill"""
        ...

    async def update_shipment_fields(self, waybill: str, fields: Dict[str, Any]) -> Optional[Shipment]:
        """Update only the given columns"""
        ...

    async def append_tracking_events(self, waybill: str, events: List[TrackingEvent]) -> Optional[Shipment]:
        """Append to the tracking history"""
        ...

    async def list_shipments(self, filter_params: ShipmentFilter) -> List[Shipment]:
        """List shipments with filtering"""
        ...

    async def get_shipment_stats(self) -> ShipmentStats:
        """Counts by status and provenance"""
        ...

    async def upsert_warehouse(self, warehouse: Warehouse) -> Warehouse:
        """Insert or replace a warehouse keyed by warehouse_id"""
        ...

    async def update_warehouse_fields(self, warehouse_id: str, fields: Dict[str, Any]) -> Optional[Warehouse]:
        """Update only the given columns"""
        ...

    async def get_warehouse(self, warehouse_id: str) -> Optional[Warehouse]:
        """Get warehouse by ID"""
        ...

    async def get_warehouse_by_name(self, name: str) -> Optional[Warehouse]:
        """Get warehouse by exact name"""
        ...

    async def list_warehouses(self, active_only: bool = False) -> List[Warehouse]:
        """List warehouses"""
        ...

    async def delete_warehouse(self, warehouse_id: str) -> bool:
        """Delete a warehouse; False when it does not exist, WarehouseInUseError when shipments reference it"""
        ...


# ============================================================================
# Carrier Protocol
# ============================================================================

@runtime_checkable
class CarrierGatewayProtocol(Protocol):
    """Interface for the carrier gateway"""

    async def create_shipment(self, request: CreateShipmentRequest) -> CarrierResponse:
        ...

    async def generate_waybills(self, count: int = 5) -> CarrierResponse:
        ...

    async def track_shipment(self, waybill: str) -> CarrierResponse:
        ...

    async def cancel_shipment(self, waybill: str) -> CarrierResponse:
        ...

    async def request_pickup(self, request: PickupRequest) -> CarrierResponse:
        ...

    async def register_warehouse(self, request: WarehouseRegistration) -> CarrierResponse:
        ...

    async def edit_warehouse(self, request: WarehouseEdit) -> CarrierResponse:
        ...

    async def schedule_reverse_pickup(self, request: ReversePickupRequest) -> CarrierResponse:
        ...

    async def track_reverse_pickup(self, tracking_number: str) -> CarrierResponse:
        ...

    async def cancel_reverse_pickup(self, tracking_number: str) -> CarrierResponse:
        ...

    async def check_serviceability(self, pincode: str) -> CarrierResponse:
        ...

    async def get_rate_quote(self, request: RateQuoteRequest) -> CarrierResponse:
        ...

    async def check_bulk_serviceability(self, pincodes: List[str]) -> CarrierResponse:
        ...

    async def get_expected_tat(self, request: ExpectedTatRequest) -> CarrierResponse:
        ...


# ============================================================================
# Event Bus Protocol
# ============================================================================

@runtime_checkable
class EventBusProtocol(Protocol):
    """Interface for Event Bus - no I/O imports"""

    async def publish_event(self, event: Any) -> None:
        """Publish an event"""
        ...
