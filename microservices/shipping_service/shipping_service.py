"""
Shipping Service Business Logic

Coordinates the carrier gateway with the shipment ledger: shipments are
always recorded, pickups are refused for unknown or inactive warehouses,
and carrier failures come back as classified responses.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .carrier.diagnostics import (
    analyze_warehouse_name,
    build_troubleshooting_guide,
    compare_warehouse_names,
    diagnose_auth_error,
)
from .carrier.fallback import is_local_waybill, local_waybill_for
from .carrier.models import (
    CarrierOutcome,
    CarrierResponse,
    CreateShipmentRequest,
    ExpectedTatRequest,
    ParcelAddress,
    PickupRequest,
    RateQuoteRequest,
    WarehouseEdit,
    WarehouseRegistration,
)
from .events.publishers import (
    publish_pickup_requested,
    publish_shipment_created,
    publish_shipment_local_fallback,
    publish_shipment_status_changed,
)
from .models import (
    CarrierLookupResponse,
    PaymentMode,
    PickupResponse,
    PickupScheduleRequest,
    Shipment,
    ShipmentCreateRequest,
    ShipmentFilter,
    ShipmentListResponse,
    ShipmentResponse,
    ShipmentStats,
    ShipmentStatus,
    ShipmentStatusUpdateRequest,
    TrackingEvent,
    Warehouse,
    WarehouseCreateRequest,
    WarehouseListResponse,
    WarehouseNameCheckRequest,
    WarehouseResponse,
    WarehouseUpdateRequest,
    WaybillSource,
)
from .protocols import (
    CarrierGatewayProtocol,
    EventBusProtocol,
    LedgerWriteError,
    ShipmentNotFoundError,
    ShippingServiceError,
    WarehouseInactiveError,
    WarehouseInUseError,
    WarehouseNotFoundError,
)
from .shipment_ledger import ShipmentLedger

logger = logging.getLogger(__name__)

PICKUP_HTTP_STATUS = {
    CarrierOutcome.AUTH_ERROR: 401,
    CarrierOutcome.VALIDATION_ERROR: 400,
    CarrierOutcome.NOT_FOUND: 404,
    CarrierOutcome.NETWORK_ERROR: 503,
}

CARRIER_SYNCED_WAREHOUSE_FIELDS = {"phone", "address", "pin"}


def carrier_error_code(outcome: CarrierOutcome) -> str:
    """Error code exposed for a non-success carrier outcome"""
    return outcome.value.upper()


def describe_carrier_failure(response: CarrierResponse) -> str:
    return f"{response.outcome.value}: {response.error or 'no detail from carrier'}"


class ShippingService:
    """
    Shipping business logic

    Args:
        ledger: Shipment ledger (system of record)
        gateway: Carrier gateway
        event_bus: Request-scoped event bus (optional)
    """

    def __init__(
        self,
        ledger: ShipmentLedger,
        gateway: CarrierGatewayProtocol,
        event_bus: Optional[EventBusProtocol] = None,
    ):
        self.ledger = ledger
        self.gateway = gateway
        self.event_bus = event_bus

    # ====================
    # Shipments
    # ====================

    async def create_shipment(self, request: ShipmentCreateRequest) -> ShipmentResponse:
        """
        Manifest a shipment with the carrier and record it in the ledger.

        The ledger write happens whether or not the carrier accepted the
        shipment. When the carrier did not confirm, the record carries a
        LOCAL- waybill, waybill_source=local and the classified carrier error.
        """
        if request.warehouse_id:
            try:
                warehouse: Optional[Warehouse] = await self.ledger.require_active_warehouse(request.warehouse_id)
            except WarehouseNotFoundError as e:
                return ShipmentResponse(success=False, message=str(e), error_code="RECORD_NOT_FOUND")
            except WarehouseInactiveError as e:
                return ShipmentResponse(success=False, message=str(e), error_code="WAREHOUSE_INACTIVE")
        else:
            warehouse = await self.ledger.get_default_warehouse()
            if warehouse is None:
                logger.warning("No active warehouse configured; shipment will be recorded locally")

        reference = request.order_id or f"ship_{uuid.uuid4().hex[:12]}"
        cod_amount = request.cod_amount if request.payment_mode == PaymentMode.COD else Decimal("0")

        carrier_request = CreateShipmentRequest(
            order_reference=reference,
            consignee=ParcelAddress(
                name=request.customer_name,
                phone=request.customer_phone,
                address=request.delivery_address,
                city=request.delivery_city or "",
                state=request.delivery_state or "",
                pincode=request.delivery_pincode,
                country=request.delivery_country,
            ),
            return_address=self._return_address(warehouse),
            pickup_location=warehouse.name if warehouse else "",
            products_desc=request.products_desc or "",
            payment_mode=request.payment_mode.value,
            cod_amount=cod_amount,
            total_amount=request.total_amount,
            quantity=request.quantity,
            weight=request.weight,
            length=request.length or 0.0,
            width=request.width or 0.0,
            height=request.height or 0.0,
            shipping_mode=request.shipping_mode.value,
            waybill=request.waybill,
        )
        response = await self.gateway.create_shipment(carrier_request)

        carrier_status: Optional[str] = None
        carrier_error: Optional[str] = None
        if response.ok and not response.is_fallback:
            waybill = response.data["waybill"]
            source = WaybillSource.CARRIER
            carrier_status = response.data.get("status")
        elif response.ok:
            waybill = response.data.get("waybill") or local_waybill_for(reference, request.delivery_pincode)
            source = WaybillSource.LOCAL
            carrier_error = f"fallback: {response.error}"
        else:
            waybill = local_waybill_for(reference, request.delivery_pincode)
            source = WaybillSource.LOCAL
            carrier_error = describe_carrier_failure(response)

        try:
            shipment = await self.ledger.create_shipment(
                waybill,
                waybill_source=source,
                order_id=request.order_id,
                warehouse_id=warehouse.warehouse_id if warehouse else None,
                customer_name=request.customer_name,
                customer_phone=request.customer_phone,
                customer_email=request.customer_email,
                delivery_address=request.delivery_address,
                delivery_city=request.delivery_city,
                delivery_state=request.delivery_state,
                delivery_pincode=request.delivery_pincode,
                delivery_country=request.delivery_country,
                return_address=warehouse.return_address if warehouse else None,
                return_pincode=warehouse.return_pin if warehouse else None,
                return_city=warehouse.return_city if warehouse else None,
                return_state=warehouse.return_state if warehouse else None,
                products_desc=request.products_desc,
                payment_mode=request.payment_mode,
                cod_amount=cod_amount,
                total_amount=request.total_amount,
                weight=request.weight,
                length=request.length,
                width=request.width,
                height=request.height,
                shipping_mode=request.shipping_mode,
                carrier_status=carrier_status,
                carrier_error=carrier_error,
                notes=request.notes,
            )
        except Exception as e:
            logger.error(f"Failed to record shipment {waybill} in ledger: {e}")
            return ShipmentResponse(
                success=False,
                message=f"Failed to record shipment: {e}",
                error_code="LEDGER_ERROR",
                carrier_outcome=response.outcome.value,
            )

        await publish_shipment_created(
            self.event_bus,
            shipment_id=shipment.shipment_id,
            waybill=shipment.waybill,
            waybill_source=shipment.waybill_source.value,
            payment_mode=shipment.payment_mode.value,
            order_id=shipment.order_id,
            warehouse_id=shipment.warehouse_id,
        )
        if source == WaybillSource.LOCAL:
            await publish_shipment_local_fallback(
                self.event_bus,
                waybill=shipment.waybill,
                carrier_outcome=response.outcome.value,
                carrier_error=carrier_error,
                order_id=shipment.order_id,
            )
            message = f"Shipment recorded locally ({carrier_error})"
        else:
            message = "Shipment created with carrier"

        return ShipmentResponse(
            success=True,
            shipment=shipment,
            message=message,
            carrier_outcome=response.outcome.value,
        )

    async def get_shipment(self, waybill: str) -> Optional[Shipment]:
        """Get shipment by waybill"""
        try:
            return await self.ledger.get_shipment(waybill)
        except Exception as e:
            logger.error(f"Failed to get shipment {waybill}: {e}")
            raise ShippingServiceError(f"Failed to get shipment: {e}")

    async def list_shipments(self, filter_params: ShipmentFilter) -> ShipmentListResponse:
        shipments = await self.ledger.list_shipments(filter_params)
        return ShipmentListResponse(
            shipments=shipments,
            count=len(shipments),
            limit=filter_params.limit,
            offset=filter_params.offset,
        )

    async def update_shipment_status(
        self,
        waybill: str,
        request: ShipmentStatusUpdateRequest,
    ) -> ShipmentResponse:
        """Manual status change by an operator"""
        current = await self.ledger.get_shipment(waybill)
        if current is None:
            return ShipmentResponse(success=False, message=f"Shipment {waybill} not found", error_code="RECORD_NOT_FOUND")

        try:
            shipment = await self.ledger.update_shipment_status(waybill, request.status, request.notes)
        except ShipmentNotFoundError as e:
            return ShipmentResponse(success=False, message=str(e), error_code="RECORD_NOT_FOUND")
        except LedgerWriteError as e:
            return ShipmentResponse(success=False, message=str(e), error_code="LEDGER_ERROR")

        if current.status != request.status:
            await publish_shipment_status_changed(
                self.event_bus,
                waybill=waybill,
                old_status=current.status.value,
                new_status=request.status.value,
                order_id=current.order_id,
            )
        return ShipmentResponse(success=True, shipment=shipment, message=f"Shipment status updated to {request.status.value}")

    async def track_shipment(self, waybill: str) -> ShipmentResponse:
        """
        Refresh a shipment from carrier tracking.

        New scans are appended to the ledger history and the status is
        updated when the carrier reports a different one. Locally issued
        waybills are unknown to the carrier and are returned as recorded.
        """
        current = await self.ledger.get_shipment(waybill)
        if current is None:
            return ShipmentResponse(success=False, message=f"Shipment {waybill} not found", error_code="RECORD_NOT_FOUND")

        if is_local_waybill(waybill):
            return ShipmentResponse(
                success=True,
                shipment=current,
                message="Shipment has a local waybill; no carrier tracking available",
            )

        response = await self.gateway.track_shipment(waybill)
        if not response.ok:
            return ShipmentResponse(
                success=False,
                shipment=current,
                message=response.error or "Carrier tracking failed",
                error_code=carrier_error_code(response.outcome),
                carrier_outcome=response.outcome.value,
            )
        if response.is_fallback:
            return ShipmentResponse(
                success=True,
                shipment=current,
                message=f"Carrier tracking unavailable ({response.error}); showing recorded state",
                carrier_outcome=response.outcome.value,
            )

        shipment = current
        known = {(e.status, e.timestamp) for e in current.tracking_events}
        now = datetime.now(timezone.utc)
        new_events = []
        for raw in response.data.get("events", []):
            event = TrackingEvent(**{**raw, "timestamp": raw.get("timestamp") or now})
            if (event.status, event.timestamp) not in known:
                new_events.append(event)
        if new_events:
            shipment = await self.ledger.append_tracking_events(waybill, new_events)

        fields: Dict[str, Any] = {}
        new_status = ShipmentStatus(response.data["status"])
        if new_status != current.status:
            fields["status"] = new_status
        if response.data.get("carrier_status") != current.carrier_status:
            fields["carrier_status"] = response.data.get("carrier_status")
        if response.data.get("expected_delivery"):
            fields["estimated_delivery"] = response.data["expected_delivery"]
        if fields:
            shipment = await self.ledger.update_shipment(waybill, fields)

        if "status" in fields:
            await publish_shipment_status_changed(
                self.event_bus,
                waybill=waybill,
                old_status=current.status.value,
                new_status=new_status.value,
                order_id=current.order_id,
                source="carrier",
            )

        return ShipmentResponse(
            success=True,
            shipment=shipment,
            message=f"Tracking refreshed ({len(new_events)} new events)",
            carrier_outcome=response.outcome.value,
        )

    async def cancel_shipment(self, waybill: str) -> ShipmentResponse:
        """Cancel with the carrier (carrier waybills only), then in the ledger"""
        current = await self.ledger.get_shipment(waybill)
        if current is None:
            return ShipmentResponse(success=False, message=f"Shipment {waybill} not found", error_code="RECORD_NOT_FOUND")
        if current.status in (ShipmentStatus.DELIVERED, ShipmentStatus.CANCELLED):
            return ShipmentResponse(
                success=False,
                shipment=current,
                message=f"Shipment is already {current.status.value}",
                error_code="INVALID_TRANSITION",
            )

        outcome: Optional[str] = None
        if current.waybill_source == WaybillSource.CARRIER:
            response = await self.gateway.cancel_shipment(waybill)
            outcome = response.outcome.value
            if not response.ok:
                return ShipmentResponse(
                    success=False,
                    shipment=current,
                    message=response.error or "Carrier refused the cancellation",
                    error_code=carrier_error_code(response.outcome),
                    carrier_outcome=outcome,
                )

        shipment = await self.ledger.update_shipment_status(waybill, ShipmentStatus.CANCELLED)
        await publish_shipment_status_changed(
            self.event_bus,
            waybill=waybill,
            old_status=current.status.value,
            new_status=ShipmentStatus.CANCELLED.value,
            order_id=current.order_id,
        )
        return ShipmentResponse(success=True, shipment=shipment, message="Shipment cancelled", carrier_outcome=outcome)

    async def get_stats(self) -> ShipmentStats:
        return await self.ledger.shipment_stats()

    # ====================
    # Warehouses
    # ====================

    async def create_warehouse(self, request: WarehouseCreateRequest) -> WarehouseResponse:
        """
        Record a warehouse, optionally registering it with the carrier first.

        A carrier registration failure does not block the local record; the
        warehouse is saved with carrier_registered=False.
        """
        carrier_outcome: Optional[str] = None
        carrier_registered = False
        carrier_note = ""

        if request.register_with_carrier:
            response = await self.gateway.register_warehouse(
                WarehouseRegistration(
                    name=request.name,
                    registered_name=request.registered_name,
                    phone=request.phone,
                    email=request.email,
                    address=request.address,
                    city=request.city or "",
                    pin=request.pin,
                    country=request.country,
                    return_address=request.return_address or "",
                    return_pin=request.return_pin or "",
                    return_city=request.return_city or "",
                    return_state=request.return_state or "",
                    return_country=request.return_country or "India",
                )
            )
            carrier_outcome = response.outcome.value
            carrier_registered = response.ok
            if not response.ok:
                carrier_note = f"; carrier registration failed ({describe_carrier_failure(response)})"
                logger.warning(f"Warehouse {request.name} not registered with carrier: {response.error}")

        fields = request.model_dump(exclude={"name", "register_with_carrier"})
        try:
            warehouse = await self.ledger.create_warehouse(
                request.name,
                carrier_registered=carrier_registered,
                **fields,
            )
        except LedgerWriteError as e:
            return WarehouseResponse(success=False, message=str(e), error_code="VALIDATION_ERROR", carrier_outcome=carrier_outcome)
        except Exception as e:
            logger.error(f"Failed to record warehouse {request.name}: {e}")
            return WarehouseResponse(success=False, message=f"Failed to record warehouse: {e}", error_code="LEDGER_ERROR")

        return WarehouseResponse(
            success=True,
            warehouse=warehouse,
            message=f"Warehouse created{carrier_note}",
            carrier_outcome=carrier_outcome,
        )

    async def update_warehouse(self, warehouse_id: str, request: WarehouseUpdateRequest) -> WarehouseResponse:
        fields = request.model_dump(exclude_unset=True, exclude={"sync_with_carrier"})
        try:
            warehouse = await self.ledger.update_warehouse(warehouse_id, fields)
        except WarehouseNotFoundError as e:
            return WarehouseResponse(success=False, message=str(e), error_code="RECORD_NOT_FOUND")
        except LedgerWriteError as e:
            return WarehouseResponse(success=False, message=str(e), error_code="VALIDATION_ERROR")

        carrier_outcome: Optional[str] = None
        message = "Warehouse updated"
        if (
            request.sync_with_carrier
            and warehouse.carrier_registered
            and CARRIER_SYNCED_WAREHOUSE_FIELDS & set(fields)
        ):
            response = await self.gateway.edit_warehouse(
                WarehouseEdit(name=warehouse.name, phone=warehouse.phone, address=warehouse.address, pin=warehouse.pin)
            )
            carrier_outcome = response.outcome.value
            if not response.ok:
                message = f"Warehouse updated locally; carrier sync failed ({describe_carrier_failure(response)})"

        return WarehouseResponse(success=True, warehouse=warehouse, message=message, carrier_outcome=carrier_outcome)

    async def get_warehouse(self, warehouse_id: str) -> Optional[Warehouse]:
        return await self.ledger.get_warehouse(warehouse_id)

    async def list_warehouses(self, active_only: bool = False) -> WarehouseListResponse:
        warehouses = await self.ledger.list_warehouses(active_only=active_only)
        return WarehouseListResponse(warehouses=warehouses, count=len(warehouses))

    async def delete_warehouse(self, warehouse_id: str) -> WarehouseResponse:
        """Local delete only; the carrier keeps its registration"""
        warehouse = await self.ledger.get_warehouse(warehouse_id)
        try:
            await self.ledger.delete_warehouse(warehouse_id)
        except WarehouseNotFoundError as e:
            return WarehouseResponse(success=False, message=str(e), error_code="RECORD_NOT_FOUND")
        except WarehouseInUseError as e:
            return WarehouseResponse(
                success=False,
                warehouse=warehouse,
                message=f"{e}; deactivate it instead",
                error_code="WAREHOUSE_IN_USE",
            )
        return WarehouseResponse(success=True, warehouse=warehouse, message="Warehouse deleted")

    # ====================
    # Pickups
    # ====================

    async def request_pickup(self, request: PickupScheduleRequest) -> PickupResponse:
        """
        Request a carrier pickup at a known, active warehouse.

        An authorization failure is returned with status 401 and a
        diagnostic block about the warehouse name that was sent.
        """
        try:
            warehouse = await self.ledger.require_active_warehouse(request.warehouse_id)
        except WarehouseNotFoundError as e:
            return PickupResponse(success=False, status=404, message=str(e), error_code="RECORD_NOT_FOUND")
        except WarehouseInactiveError as e:
            return PickupResponse(success=False, status=409, message=str(e), error_code="WAREHOUSE_INACTIVE")

        response = await self.gateway.request_pickup(
            PickupRequest(
                warehouse_name=warehouse.name,
                pickup_date=request.pickup_date,
                pickup_time=request.pickup_time,
                expected_package_count=request.expected_package_count,
            )
        )

        if not response.ok:
            status_code = response.status_code or PICKUP_HTTP_STATUS.get(response.outcome, 500)
            diagnostics = response.diagnostics
            if response.outcome == CarrierOutcome.AUTH_ERROR and diagnostics is None:
                diagnostics = diagnose_auth_error(warehouse.name, response.error or "")
            logger.error(f"Pickup for warehouse {warehouse.name} failed: {describe_carrier_failure(response)}")
            return PickupResponse(
                success=False,
                status=status_code,
                message=response.error or "Pickup request failed",
                error_code=carrier_error_code(response.outcome),
                diagnostics=diagnostics,
            )

        pickup_id = response.data.get("pickup_id")
        pickup_date = response.data.get("pickup_date") or request.pickup_date
        for waybill in request.waybills:
            try:
                await self.ledger.record_pickup(waybill, pickup_id, pickup_date)
            except ShippingServiceError as e:
                logger.warning(f"Pickup {pickup_id} not attached to shipment {waybill}: {e}")

        await publish_pickup_requested(
            self.event_bus,
            warehouse_id=warehouse.warehouse_id,
            warehouse_name=warehouse.name,
            pickup_date=pickup_date,
            expected_package_count=request.expected_package_count,
            pickup_id=pickup_id,
        )
        return PickupResponse(
            success=True,
            status=response.status_code or 200,
            message="Pickup scheduled",
            pickup_id=pickup_id,
            pickup_date=pickup_date,
        )

    # ====================
    # Lookups
    # ====================

    async def check_serviceability(self, pincode: str) -> CarrierLookupResponse:
        return self._lookup(await self.gateway.check_serviceability(pincode), "Serviceability checked")

    async def get_rate_quote(self, request: RateQuoteRequest) -> CarrierLookupResponse:
        return self._lookup(await self.gateway.get_rate_quote(request), "Rate quoted")

    async def check_bulk_serviceability(self, pincodes: List[str]) -> CarrierLookupResponse:
        return self._lookup(await self.gateway.check_bulk_serviceability(pincodes), "Serviceability checked")

    async def get_expected_tat(self, request: ExpectedTatRequest) -> CarrierLookupResponse:
        return self._lookup(await self.gateway.get_expected_tat(request), "Expected TAT calculated")

    async def generate_waybills(self, count: int) -> CarrierLookupResponse:
        return self._lookup(await self.gateway.generate_waybills(count), "Waybills generated")

    def diagnose_warehouse_name(self, request: WarehouseNameCheckRequest) -> Dict[str, Any]:
        """Name analysis, optional comparison and troubleshooting text"""
        result: Dict[str, Any] = {
            "analysis": analyze_warehouse_name(request.name).model_dump(),
            "guide": build_troubleshooting_guide(request.name, request.error_message or ""),
        }
        if request.compare_with is not None:
            result["comparison"] = compare_warehouse_names(request.name, request.compare_with)
        if request.error_message:
            result["diagnostic"] = diagnose_auth_error(request.name, request.error_message).model_dump()
        return result

    async def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "carrier_configured": getattr(self.gateway, "is_configured", False),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @staticmethod
    def _lookup(response: CarrierResponse, message: str) -> CarrierLookupResponse:
        if not response.ok:
            return CarrierLookupResponse(
                success=False,
                message=response.error or "Carrier lookup failed",
                error_code=carrier_error_code(response.outcome),
            )
        if response.is_fallback:
            message = f"{message} locally ({response.error})"
        return CarrierLookupResponse(success=True, data=response.data, is_fallback=response.is_fallback, message=message)

    @staticmethod
    def _return_address(warehouse: Optional[Warehouse]) -> Optional[ParcelAddress]:
        if warehouse is None:
            return None
        return ParcelAddress(
            name=warehouse.registered_name or warehouse.name,
            phone=warehouse.phone,
            address=warehouse.return_address or warehouse.address,
            city=warehouse.return_city or warehouse.city or "",
            state=warehouse.return_state or warehouse.state or "",
            pincode=warehouse.return_pin or warehouse.pin,
            country=warehouse.return_country or warehouse.country,
        )
