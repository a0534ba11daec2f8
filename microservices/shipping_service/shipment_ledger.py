"""
Shipment Ledger

System of record for warehouses, shipments and their pickup sub-state.
The ledger never talks to the carrier; fulfillment code writes here whether
or not the carrier accepted the shipment.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .models import (
    PickupStatus,
    Shipment,
    ShipmentFilter,
    ShipmentStats,
    ShipmentStatus,
    TrackingEvent,
    Warehouse,
)
from .protocols import (
    LedgerWriteError,
    ShipmentLedgerRepositoryProtocol,
    ShipmentNotFoundError,
    WarehouseInactiveError,
    WarehouseInUseError,
    WarehouseNotFoundError,
)

logger = logging.getLogger(__name__)

SHIPMENT_IMMUTABLE_FIELDS = {"shipment_id", "waybill", "created_at", "updated_at", "tracking_events"}
WAREHOUSE_IMMUTABLE_FIELDS = {"warehouse_id", "name", "created_at", "updated_at"}


class ShipmentLedger:
    """Ledger operations over a ShipmentLedgerRepositoryProtocol"""

    def __init__(self, repository: ShipmentLedgerRepositoryProtocol):
        self.repository = repository

    # ====================
    # Shipments
    # ====================

    async def create_shipment(self, waybill: str, **fields: Any) -> Shipment:
        """
        Record a shipment keyed by waybill.

        Re-recording an existing waybill replaces its fields but keeps
        shipment_id, created_at and the tracking history.
        """
        if not waybill:
            raise LedgerWriteError("waybill is required")

        now = datetime.now(timezone.utc)
        existing = await self.repository.get_shipment(waybill)
        tracking_events = fields.pop("tracking_events", [])
        if existing:
            tracking_events = existing.tracking_events
        shipment = Shipment(
            shipment_id=existing.shipment_id if existing else f"shp_{uuid.uuid4().hex[:12]}",
            waybill=waybill,
            created_at=existing.created_at if existing else now,
            updated_at=now,
            tracking_events=tracking_events,
            **fields,
        )
        saved = await self.repository.upsert_shipment(shipment)
        logger.info(f"Ledger recorded shipment {waybill} ({saved.waybill_source.value}) for order {saved.order_id}")
        return saved

    async def get_shipment(self, waybill: str) -> Optional[Shipment]:
        return await self.repository.get_shipment(waybill)

    async def update_shipment(self, waybill: str, fields: Dict[str, Any]) -> Shipment:
        """Partial update; only the named fields change"""
        unknown = set(fields) - set(Shipment.model_fields)
        blocked = set(fields) & SHIPMENT_IMMUTABLE_FIELDS
        if unknown or blocked:
            raise LedgerWriteError(f"cannot update shipment fields: {sorted(unknown | blocked)}")

        updated = await self.repository.update_shipment_fields(waybill, fields)
        if updated is None:
            raise ShipmentNotFoundError(f"Shipment {waybill} not found")
        return updated

    async def update_shipment_status(
        self,
        waybill: str,
        status: ShipmentStatus,
        notes: Optional[str] = None,
    ) -> Shipment:
        fields: Dict[str, Any] = {"status": status}
        if notes is not None:
            fields["notes"] = notes
        shipment = await self.update_shipment(waybill, fields)
        logger.info(f"Shipment {waybill} status -> {status.value}")
        return shipment

    async def append_tracking_events(self, waybill: str, events: List[TrackingEvent]) -> Shipment:
        updated = await self.repository.append_tracking_events(waybill, events)
        if updated is None:
            raise ShipmentNotFoundError(f"Shipment {waybill} not found")
        return updated

    async def record_pickup(
        self,
        waybill: str,
        pickup_id: Optional[str],
        pickup_date: Optional[str],
        pickup_status: PickupStatus = PickupStatus.SCHEDULED,
    ) -> Shipment:
        """Attach a pickup attempt to a shipment and bump its attempt counter"""
        current = await self.repository.get_shipment(waybill)
        if current is None:
            raise ShipmentNotFoundError(f"Shipment {waybill} not found")
        return await self.update_shipment(
            waybill,
            {
                "pickup_id": pickup_id,
                "pickup_date": pickup_date,
                "pickup_status": pickup_status,
                "pickup_attempts": current.pickup_attempts + 1,
            },
        )

    async def list_shipments(self, filter_params: Optional[ShipmentFilter] = None) -> List[Shipment]:
        return await self.repository.list_shipments(filter_params or ShipmentFilter())

    async def shipment_stats(self) -> ShipmentStats:
        return await self.repository.get_shipment_stats()

    # ====================
    # Warehouses
    # ====================

    async def create_warehouse(self, name: str, **fields: Any) -> Warehouse:
        if await self.repository.get_warehouse_by_name(name):
            raise LedgerWriteError(f"Warehouse named '{name}' already exists")

        now = datetime.now(timezone.utc)
        warehouse = Warehouse(
            warehouse_id=f"wh_{uuid.uuid4().hex[:12]}",
            name=name,
            created_at=now,
            updated_at=now,
            **fields,
        )
        saved = await self.repository.upsert_warehouse(warehouse)
        logger.info(f"Ledger recorded warehouse {saved.warehouse_id} ({name})")
        return saved

    async def update_warehouse(self, warehouse_id: str, fields: Dict[str, Any]) -> Warehouse:
        unknown = set(fields) - set(Warehouse.model_fields)
        blocked = set(fields) & WAREHOUSE_IMMUTABLE_FIELDS
        if unknown or blocked:
            raise LedgerWriteError(f"cannot update warehouse fields: {sorted(unknown | blocked)}")

        updated = await self.repository.update_warehouse_fields(warehouse_id, fields)
        if updated is None:
            raise WarehouseNotFoundError(f"Warehouse {warehouse_id} not found")
        return updated

    async def get_warehouse(self, warehouse_id: str) -> Optional[Warehouse]:
        return await self.repository.get_warehouse(warehouse_id)

    async def list_warehouses(self, active_only: bool = False) -> List[Warehouse]:
        return await self.repository.list_warehouses(active_only=active_only)

    async def delete_warehouse(self, warehouse_id: str):
        """
        Remove a warehouse from the ledger.

        Raises WarehouseNotFoundError for an unknown id and WarehouseInUseError
        while shipments still point at it; deactivate it instead.
        """
        try:
            deleted = await self.repository.delete_warehouse(warehouse_id)
        except WarehouseInUseError:
            logger.warning(f"Warehouse {warehouse_id} not deleted: shipments reference it")
            raise
        if not deleted:
            raise WarehouseNotFoundError(f"Warehouse {warehouse_id} not found")
        logger.info(f"Ledger deleted warehouse {warehouse_id}")

    async def require_active_warehouse(self, warehouse_id: str) -> Warehouse:
        """Warehouse that may be used for pickups, or raise"""
        warehouse = await self.repository.get_warehouse(warehouse_id)
        if warehouse is None:
            raise WarehouseNotFoundError(f"Warehouse {warehouse_id} not found")
        if not warehouse.is_active:
            raise WarehouseInactiveError(f"Warehouse {warehouse.name} is not active")
        return warehouse

    async def get_default_warehouse(self) -> Optional[Warehouse]:
        """Oldest active warehouse"""
        warehouses = await self.repository.list_warehouses(active_only=True)
        if not warehouses:
            return None
        return sorted(warehouses, key=lambda w: w.created_at)[0]
