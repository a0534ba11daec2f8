"""
Shipment Ledger Repository

Data access layer for warehouses and shipments using PostgresClientWrapper.
Matches schema: storefront.warehouses, storefront.shipments
"""

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import asyncpg

from core.config import InfraConfig
from core.postgres_client import PostgresClientWrapper

from .models import Shipment, ShipmentFilter, ShipmentStats, TrackingEvent, Warehouse
from .protocols import WarehouseInUseError

logger = logging.getLogger(__name__)

SHIPMENT_COLUMNS = list(Shipment.model_fields)
WAREHOUSE_COLUMNS = list(Warehouse.model_fields)

# Columns kept from the first write when a waybill is recorded again
SHIPMENT_INSERT_ONLY = {"shipment_id", "waybill", "created_at", "tracking_events"}


def _to_db(column: str, value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if column == "tracking_events":
        return json.dumps([
            e.model_dump(mode="json") if isinstance(e, TrackingEvent) else e
            for e in (value or [])
        ])
    return value


class ShipmentLedgerRepository:
    """
    Repository for ledger data operations

    Tables:
        - storefront.warehouses: Carrier pickup locations
        - storefront.shipments: Forward shipments with pickup sub-state
    """

    def __init__(
        self,
        db: Optional[PostgresClientWrapper] = None,
        config: Optional[InfraConfig] = None,
    ):
        """Initialize repository with PostgresClientWrapper"""
        self.db = db or PostgresClientWrapper("shipping_service", config=config)
        self.schema = self.db.schema
        self.shipments_table = "shipments"
        self.warehouses_table = "warehouses"

        logger.info("ShipmentLedgerRepository initialized with PostgresClient")

    @property
    def _shipments(self) -> str:
        return f"{self.schema}.{self.shipments_table}"

    @property
    def _warehouses(self) -> str:
        return f"{self.schema}.{self.warehouses_table}"

    # ====================
    # Shipments
    # ====================

    async def upsert_shipment(self, shipment: Shipment) -> Shipment:
        """Insert or replace a shipment keyed by waybill"""
        data = shipment.model_dump()
        columns = SHIPMENT_COLUMNS
        placeholders = []
        for i, col in enumerate(columns, start=1):
            placeholders.append(f"${i}::jsonb" if col == "tracking_events" else f"${i}")
        updates = ", ".join(
            f"{col} = EXCLUDED.{col}" for col in columns if col not in SHIPMENT_INSERT_ONLY
        )
        query = (
            f"INSERT INTO {self._shipments} ({', '.join(columns)}) "
            f"VALUES ({', '.join(placeholders)}) "
            f"ON CONFLICT (waybill) DO UPDATE SET {updates} "
            f"RETURNING *"
        )
        params = [_to_db(col, data[col]) for col in columns]
        row = await self.db.query_row(query, params)
        return self._row_to_shipment(row)

    async def get_shipment(self, waybill: str) -> Optional[Shipment]:
        """Get shipment by waybill"""
        row = await self.db.query_row(f"SELECT * FROM {self._shipments} WHERE waybill = $1", [waybill])
        return self._row_to_shipment(row) if row else None

    async def update_shipment_fields(self, waybill: str, fields: Dict[str, Any]) -> Optional[Shipment]:
        """Update only the given columns"""
        if not fields:
            return await self.get_shipment(waybill)

        assignments = []
        params: List[Any] = []
        for col, value in fields.items():
            params.append(_to_db(col, value))
            assignments.append(f"{col} = ${len(params)}")
        params.append(datetime.now(timezone.utc))
        assignments.append(f"updated_at = ${len(params)}")
        params.append(waybill)

        query = (
            f"UPDATE {self._shipments} SET {', '.join(assignments)} "
            f"WHERE waybill = ${len(params)} RETURNING *"
        )
        row = await self.db.query_row(query, params)
        return self._row_to_shipment(row) if row else None

    async def append_tracking_events(self, waybill: str, events: List[TrackingEvent]) -> Optional[Shipment]:
        """Append to the tracking history"""
        query = (
            f"UPDATE {self._shipments} "
            f"SET tracking_events = COALESCE(tracking_events, '[]'::jsonb) || $1::jsonb, updated_at = $2 "
            f"WHERE waybill = $3 RETURNING *"
        )
        row = await self.db.query_row(
            query,
            [_to_db("tracking_events", events), datetime.now(timezone.utc), waybill],
        )
        return self._row_to_shipment(row) if row else None

    async def list_shipments(self, filter_params: ShipmentFilter) -> List[Shipment]:
        """List shipments with filtering"""
        conditions = []
        params: List[Any] = []

        def add(condition: str, value: Any):
            params.append(value)
            conditions.append(condition.format(n=len(params)))

        if filter_params.status:
            add("status = ${n}", filter_params.status.value)
        if filter_params.order_id:
            add("order_id = ${n}", filter_params.order_id)
        if filter_params.warehouse_id:
            add("warehouse_id = ${n}", filter_params.warehouse_id)
        if filter_params.waybill_source:
            add("waybill_source = ${n}", filter_params.waybill_source.value)
        if filter_params.search:
            add(
                "(waybill ILIKE ${n} OR customer_name ILIKE ${n} OR customer_phone ILIKE ${n})",
                f"%{filter_params.search}%",
            )
        if filter_params.created_from:
            add("created_at >= ${n}", filter_params.created_from)
        if filter_params.created_to:
            add("created_at <= ${n}", filter_params.created_to)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.extend([filter_params.limit, filter_params.offset])
        query = (
            f"SELECT * FROM {self._shipments} {where} "
            f"ORDER BY created_at DESC LIMIT ${len(params) - 1} OFFSET ${len(params)}"
        )
        rows = await self.db.query(query, params)
        return [self._row_to_shipment(row) for row in rows]

    async def get_shipment_stats(self) -> ShipmentStats:
        """Counts by status and provenance"""
        rows = await self.db.query(
            f"SELECT status, COUNT(*) AS count FROM {self._shipments} GROUP BY status"
        )
        by_status = {row["status"]: int(row["count"]) for row in rows}
        extra = await self.db.query_row(
            f"SELECT "
            f"COUNT(*) FILTER (WHERE waybill_source = 'local') AS local_waybills, "
            f"COUNT(*) FILTER (WHERE pickup_status = 'scheduled') AS pending_pickups "
            f"FROM {self._shipments}"
        ) or {}
        return ShipmentStats(
            total_shipments=sum(by_status.values()),
            by_status=by_status,
            local_waybills=int(extra.get("local_waybills") or 0),
            pending_pickups=int(extra.get("pending_pickups") or 0),
        )

    # ====================
    # Warehouses
    # ====================

    async def upsert_warehouse(self, warehouse: Warehouse) -> Warehouse:
        """Insert or replace a warehouse keyed by warehouse_id"""
        data = warehouse.model_dump()
        columns = WAREHOUSE_COLUMNS
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
        updates = ", ".join(
            f"{col} = EXCLUDED.{col}" for col in columns if col not in ("warehouse_id", "created_at")
        )
        query = (
            f"INSERT INTO {self._warehouses} ({', '.join(columns)}) VALUES ({placeholders}) "
            f"ON CONFLICT (warehouse_id) DO UPDATE SET {updates} RETURNING *"
        )
        row = await self.db.query_row(query, [_to_db(col, data[col]) for col in columns])
        return Warehouse(**row)

    async def update_warehouse_fields(self, warehouse_id: str, fields: Dict[str, Any]) -> Optional[Warehouse]:
        """Update only the given columns"""
        if not fields:
            return await self.get_warehouse(warehouse_id)

        assignments = []
        params: List[Any] = []
        for col, value in fields.items():
            params.append(_to_db(col, value))
            assignments.append(f"{col} = ${len(params)}")
        params.append(datetime.now(timezone.utc))
        assignments.append(f"updated_at = ${len(params)}")
        params.append(warehouse_id)

        row = await self.db.query_row(
            f"UPDATE {self._warehouses} SET {', '.join(assignments)} "
            f"WHERE warehouse_id = ${len(params)} RETURNING *",
            params,
        )
        return Warehouse(**row) if row else None

    async def get_warehouse(self, warehouse_id: str) -> Optional[Warehouse]:
        """Get warehouse by ID"""
        row = await self.db.query_row(
            f"SELECT * FROM {self._warehouses} WHERE warehouse_id = $1", [warehouse_id]
        )
        return Warehouse(**row) if row else None

    async def get_warehouse_by_name(self, name: str) -> Optional[Warehouse]:
        """Get warehouse by exact name"""
        row = await self.db.query_row(f"SELECT * FROM {self._warehouses} WHERE name = $1", [name])
        return Warehouse(**row) if row else None

    async def list_warehouses(self, active_only: bool = False) -> List[Warehouse]:
        """List warehouses"""
        where = "WHERE is_active = TRUE" if active_only else ""
        rows = await self.db.query(f"SELECT * FROM {self._warehouses} {where} ORDER BY created_at ASC")
        return [Warehouse(**row) for row in rows]

    async def delete_warehouse(self, warehouse_id: str) -> bool:
        """Delete a warehouse no shipment references"""
        try:
            result = await self.db.execute(f"DELETE FROM {self._warehouses} WHERE warehouse_id = $1", [warehouse_id])
        except asyncpg.ForeignKeyViolationError:
            raise WarehouseInUseError(f"Warehouse {warehouse_id} is referenced by shipments")
        return result == "DELETE 1"

    def _row_to_shipment(self, row: Dict[str, Any]) -> Shipment:
        data = dict(row)
        events = data.get("tracking_events")
        if isinstance(events, str):
            data["tracking_events"] = json.loads(events)
        elif events is None:
            data["tracking_events"] = []
        return Shipment(**data)
