"""
Return Service Business Logic

Return requests for physical order items and the carrier reverse pickups
that bring them back to the warehouse.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from core.event_bus import ServiceSource
from microservices.order_service.events.publishers import publish_notification_failed
from microservices.order_service.models import Order, OrderItem, OrderStatus, ProductType
from microservices.shipping_service.carrier.fallback import standard_pickup_slots
from microservices.shipping_service.carrier.models import ParcelAddress, ReversePickupRequest
from microservices.shipping_service.carrier.validation import is_valid_pincode
from microservices.shipping_service.shipping_service import carrier_error_code, describe_carrier_failure

from .events.publishers import (
    publish_return_pickup_cancelled,
    publish_return_pickup_scheduled,
    publish_return_requested,
    publish_return_status_changed,
)
from .models import (
    PickupSlotsResponse,
    ReturnCreateRequest,
    ReturnEligibility,
    ReturnFilter,
    ReturnListResponse,
    ReturnPickupResponse,
    ReturnRequest,
    ReturnResponse,
    ReturnStatus,
    ReturnStatusUpdateRequest,
    ReturnTrackingEvent,
    ReturnTrackingResponse,
    ReverseTrackingStatus,
    SchedulePickupRequest,
    TrackingSyncResponse,
)
from .protocols import (
    DuplicateReturnError,
    EventBusProtocol,
    NotificationClientProtocol,
    OrderReaderProtocol,
    ReturnRepositoryProtocol,
    ReturnServiceError,
    ReverseLogisticsGatewayProtocol,
    WarehouseLookupProtocol,
)

logger = logging.getLogger(__name__)

DEFAULT_RETURN_WINDOW_DAYS = 7
RETURN_PARCEL_WEIGHT_KG = 0.5

# Operator transitions
VALID_TRANSITIONS = {
    ReturnStatus.PENDING: {ReturnStatus.APPROVED, ReturnStatus.REJECTED},
    ReturnStatus.APPROVED: {ReturnStatus.PROCESSING},
    ReturnStatus.PROCESSING: {ReturnStatus.COMPLETED},
}

CANCELLABLE_STATUSES = {ReturnStatus.APPROVED, ReturnStatus.PROCESSING}

TRACKING_STATUS_MAP = {
    ReverseTrackingStatus.PICKED_UP: ReturnStatus.PROCESSING,
    ReverseTrackingStatus.DELIVERED_TO_WAREHOUSE: ReturnStatus.PROCESSING,
    ReverseTrackingStatus.PROCESSED: ReturnStatus.COMPLETED,
}

# Tracking sync only moves a return forward along this order
_PROGRESS = {
    ReturnStatus.PENDING: 0,
    ReturnStatus.APPROVED: 1,
    ReturnStatus.PROCESSING: 2,
    ReturnStatus.COMPLETED: 3,
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def can_transition(current: ReturnStatus, target: ReturnStatus) -> bool:
    return target in VALID_TRANSITIONS.get(current, set())


def status_from_tracking(current: ReturnStatus, tracking_status: ReverseTrackingStatus) -> Optional[ReturnStatus]:
    """Return status implied by carrier tracking, or None when nothing should change"""
    target = TRACKING_STATUS_MAP.get(tracking_status)
    if target is None or current not in _PROGRESS:
        return None
    if _PROGRESS[target] <= _PROGRESS[current]:
        return None
    return target


class ReturnService:
    """
    Return workflow business logic

    Args:
        repository: Return request store
        orders: Order lookup and item return marking
        warehouses: Resolves the warehouse returns are shipped to
        gateway: Carrier reverse pickup operations
        notification_client: Operator and customer notifications
        event_bus: Request-scoped event bus (optional)
        return_window_days: Days after the order during which returns are accepted
        returns_email: Operator inbox for new return requests
    """

    def __init__(
        self,
        repository: ReturnRepositoryProtocol,
        orders: OrderReaderProtocol,
        warehouses: WarehouseLookupProtocol,
        gateway: ReverseLogisticsGatewayProtocol,
        notification_client: NotificationClientProtocol,
        event_bus: Optional[EventBusProtocol] = None,
        return_window_days: int = DEFAULT_RETURN_WINDOW_DAYS,
        returns_email: str = "returns@artstore.local",
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.repository = repository
        self.orders = orders
        self.warehouses = warehouses
        self.gateway = gateway
        self.notification_client = notification_client
        self.event_bus = event_bus
        self.return_window_days = return_window_days
        self.returns_email = returns_email
        self.clock = clock

    # Eligibility

    async def is_eligible_for_return(self, order_id: str, item_id: str) -> ReturnEligibility:
        """Check whether an order item may be returned"""
        eligibility, _, _ = await self._check_eligibility(order_id, item_id)
        return eligibility

    async def _check_eligibility(
        self, order_id: str, item_id: str
    ) -> Tuple[ReturnEligibility, Optional[Order], Optional[OrderItem]]:
        try:
            order = await self.orders.get_order(order_id)
        except Exception as e:
            logger.error(f"Failed to load order {order_id} for return eligibility: {e}")
            raise ReturnServiceError(f"Failed to load order: {str(e)}")

        item = None
        if order:
            item = next((i for i in order.items if i.item_id == item_id), None)
        if item is None:
            return ReturnEligibility(eligible=False, reason="Order item not found"), order, None

        if order.status != OrderStatus.COMPLETED:
            return ReturnEligibility(eligible=False, reason="Order must be completed before return"), order, item

        if order.created_at < self.clock() - timedelta(days=self.return_window_days):
            reason = f"Return window has expired ({self.return_window_days} days)"
            return ReturnEligibility(eligible=False, reason=reason), order, item

        if item.product_type == ProductType.DIGITAL:
            return ReturnEligibility(eligible=False, reason="Digital products are not eligible for return"), order, item

        if item.returned:
            return ReturnEligibility(eligible=False, reason="Order item has already been returned"), order, item

        try:
            existing = await self.repository.find_active_return(order_id, item_id)
        except Exception as e:
            logger.error(f"Failed to look up active returns for item {item_id}: {e}")
            raise ReturnServiceError(f"Failed to look up returns: {str(e)}")
        if existing:
            return ReturnEligibility(eligible=False, reason="Return request already exists for this item"), order, item

        return ReturnEligibility(eligible=True), order, item

    # Return Requests

    async def create_return_request(self, request: ReturnCreateRequest) -> ReturnResponse:
        """
        Open a return for one order item.

        Eligibility is re-checked here; the record is stored as `pending`
        with a snapshot of the item. The operator notification is best
        effort and only produces a warning when it fails.
        """
        eligibility, order, item = await self._check_eligibility(request.order_id, request.item_id)
        if not eligibility.eligible:
            return ReturnResponse(success=False, message=eligibility.reason, error_code="NOT_ELIGIBLE")

        now = self.clock()
        return_request = ReturnRequest(
            return_id=f"return_{uuid.uuid4().hex[:12]}",
            order_id=order.order_id,
            order_item_id=item.item_id,
            product_id=item.product_id,
            product_title=item.product_title,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.total_price,
            reason=request.reason,
            customer_notes=request.customer_notes,
            requested_by=request.requested_by,
            status=ReturnStatus.PENDING,
            requested_at=now,
            updated_at=now,
        )

        try:
            created = await self.repository.create_return(return_request)
        except DuplicateReturnError as e:
            return ReturnResponse(success=False, message=str(e), error_code="NOT_ELIGIBLE")
        except Exception as e:
            logger.error(f"Failed to create return for item {item.item_id}: {e}")
            raise ReturnServiceError(f"Failed to create return request: {str(e)}")

        logger.info(f"Return {created.return_id} requested for order {order.order_id} item {item.item_id}")

        await publish_return_requested(
            self.event_bus,
            return_id=created.return_id,
            order_id=created.order_id,
            order_item_id=created.order_item_id,
            product_id=created.product_id,
            requested_by=created.requested_by,
            reason=created.reason,
        )

        warnings: List[str] = []
        await self._notify(
            "return_request_received",
            self.returns_email,
            {
                "return_id": created.return_id,
                "order_id": order.order_id,
                "customer_name": order.customer_name or "Customer",
                "customer_email": order.customer_email or request.requested_by,
                "product_title": item.product_title,
                "quantity": item.quantity,
                "total_price": str(item.total_price),
                "reason": request.reason,
                "customer_notes": request.customer_notes or "",
                "request_date": now.isoformat(),
            },
            created.return_id,
            warnings,
        )

        return ReturnResponse(
            success=True,
            return_request=created,
            message="Return request created",
            warnings=warnings,
        )

    async def get_return(self, return_id: str) -> Optional[ReturnRequest]:
        """Get return request by ID"""
        try:
            return await self.repository.get_return(return_id)
        except Exception as e:
            logger.error(f"Failed to get return {return_id}: {e}")
            raise ReturnServiceError(f"Failed to get return: {str(e)}")

    async def get_customer_returns(self, requested_by: str, limit: int = 50, offset: int = 0) -> ReturnListResponse:
        """Returns opened by one customer, newest first"""
        return await self.get_all_returns(ReturnFilter(requested_by=requested_by, limit=limit, offset=offset))

    async def get_all_returns(self, filter_params: ReturnFilter) -> ReturnListResponse:
        try:
            returns = await self.repository.list_returns(filter_params)
        except Exception as e:
            logger.error(f"Failed to list returns: {e}")
            raise ReturnServiceError(f"Failed to list returns: {str(e)}")
        return ReturnListResponse(
            returns=returns,
            count=len(returns),
            limit=filter_params.limit,
            offset=filter_params.offset,
        )

    async def update_return_status(self, return_id: str, update: ReturnStatusUpdateRequest) -> ReturnResponse:
        """Operator status change along the allowed transitions"""
        current = await self.get_return(return_id)
        if not current:
            return ReturnResponse(success=False, message="Return request not found", error_code="RECORD_NOT_FOUND")

        if not can_transition(current.status, update.status):
            return ReturnResponse(
                success=False,
                return_request=current,
                message=f"Cannot change return from {current.status.value} to {update.status.value}",
                error_code="INVALID_TRANSITION",
            )

        fields: Dict[str, Any] = {"status": update.status, "processed_at": self.clock()}
        if update.admin_notes is not None:
            fields["admin_notes"] = update.admin_notes
        if update.refund_amount is not None:
            fields["refund_amount"] = update.refund_amount
        if update.refund_method is not None:
            fields["refund_method"] = update.refund_method

        try:
            updated = await self.repository.update_return_fields(return_id, fields, expected_status=current.status)
        except Exception as e:
            logger.error(f"Failed to update return {return_id}: {e}")
            raise ReturnServiceError(f"Failed to update return status: {str(e)}")
        if updated is None:
            latest, error_code = await self._write_lost(return_id, current)
            return ReturnResponse(
                success=False,
                return_request=latest,
                message=f"Return {return_id} changed before it could be moved to {update.status.value}",
                error_code=error_code,
            )

        warnings: List[str] = []
        await self._after_status_change(current, updated, "operator", warnings)
        return ReturnResponse(
            success=True,
            return_request=updated,
            message=f"Return {update.status.value}",
            warnings=warnings,
        )

    async def _write_lost(self, return_id: str, expected: ReturnRequest):
        """Current row and error code after a conditional write matched nothing"""
        latest = await self.get_return(return_id)
        if latest is None:
            return None, "RECORD_NOT_FOUND"
        logger.warning(
            f"Return {return_id} moved {expected.status.value} -> {latest.status.value} during a concurrent update"
        )
        return latest, "INVALID_TRANSITION"

    async def _after_status_change(
        self,
        before: ReturnRequest,
        after: ReturnRequest,
        source: str,
        warnings: List[str],
    ):
        logger.info(f"Return {after.return_id} moved {before.status.value} -> {after.status.value} ({source})")

        if after.status == ReturnStatus.COMPLETED:
            try:
                marked = await self.orders.mark_item_returned(after.order_id, after.order_item_id)
                if not marked:
                    warnings.append(f"Order item {after.order_item_id} not found when marking it returned")
            except Exception as e:
                logger.warning(f"Failed to mark item {after.order_item_id} returned: {e}")
                warnings.append(f"Order item not marked returned: {e}")

        await publish_return_status_changed(
            self.event_bus,
            return_id=after.return_id,
            order_id=after.order_id,
            old_status=before.status.value,
            new_status=after.status.value,
            source=source,
        )

        recipient = await self._customer_email(after)
        await self._notify(
            "return_status_update",
            recipient,
            {
                "return_id": after.return_id,
                "order_id": after.order_id,
                "product_title": after.product_title,
                "status": after.status.value,
                "admin_notes": after.admin_notes or "",
                "refund_amount": str(after.refund_amount) if after.refund_amount is not None else None,
                "refund_method": after.refund_method,
                "tracking_number": after.tracking_number,
            },
            after.return_id,
            warnings,
        )

    async def _customer_email(self, return_request: ReturnRequest) -> str:
        try:
            order = await self.orders.get_order(return_request.order_id)
        except Exception as e:
            logger.warning(f"Could not load order {return_request.order_id} for customer email: {e}")
            order = None
        if order and order.customer_email:
            return order.customer_email
        return return_request.requested_by

    # Reverse Pickups

    async def schedule_return_pickup(self, return_id: str, request: SchedulePickupRequest) -> ReturnPickupResponse:
        """
        Book carrier collection of an approved return.

        On success the carrier references are stored and the return moves to
        `processing`. On any carrier failure the return is left untouched and
        the classified error code is returned.
        """
        return_request = await self.get_return(return_id)
        if not return_request:
            return ReturnPickupResponse(success=False, message="Return request not found", error_code="RECORD_NOT_FOUND")

        if return_request.status != ReturnStatus.APPROVED:
            return ReturnPickupResponse(
                success=False,
                return_request=return_request,
                message=f"Pickup can only be scheduled for approved returns (status: {return_request.status.value})",
                error_code="INVALID_TRANSITION",
            )

        warehouse = await self.warehouses.get_default_warehouse()
        if not warehouse:
            return ReturnPickupResponse(
                success=False,
                return_request=return_request,
                message="No active warehouse configured to receive returns",
                error_code="WAREHOUSE_INACTIVE",
            )

        preferences = request.preferences
        pickup = ReversePickupRequest(
            return_reference=return_request.return_id,
            order_reference=return_request.order_id,
            customer=ParcelAddress(**request.customer.model_dump()),
            warehouse_name=warehouse.name,
            products_desc=f"{return_request.product_title} - Return Request",
            quantity=return_request.quantity,
            total_amount=return_request.total_price,
            weight=RETURN_PARCEL_WEIGHT_KG,
            pickup_date=preferences.date,
            pickup_time_slot=preferences.time_slot,
            special_instructions=preferences.special_instructions,
        )

        response = await self.gateway.schedule_reverse_pickup(pickup)
        if not response.ok or response.is_fallback:
            error_code = carrier_error_code(response.outcome) if not response.ok else "NETWORK_ERROR"
            logger.warning(f"Reverse pickup for return {return_id} not scheduled: {describe_carrier_failure(response)}")
            return ReturnPickupResponse(
                success=False,
                return_request=return_request,
                message=response.error or "Failed to schedule pickup",
                error_code=error_code,
            )

        data = response.data
        tracking_number = data.get("tracking_number")
        pickup_date = data.get("pickup_date") or preferences.date
        now = self.clock()
        scheduled_event = ReturnTrackingEvent(
            status=ReverseTrackingStatus.SCHEDULED.value,
            timestamp=now,
            description=f"Reverse pickup scheduled for {pickup_date}",
            source="local",
        )
        fields = {
            "tracking_number": tracking_number,
            "pickup_id": data.get("pickup_id"),
            "pickup_date": pickup_date,
            "pickup_time_slot": data.get("pickup_time_slot") or preferences.time_slot,
            "status": ReturnStatus.PROCESSING,
            "processed_at": now,
            "tracking_events": list(return_request.tracking_events) + [scheduled_event],
        }

        try:
            updated = await self.repository.update_return_fields(
                return_id, fields, expected_status=return_request.status
            )
        except Exception as e:
            logger.error(f"Pickup {tracking_number} booked but return {return_id} not updated: {e}")
            return ReturnPickupResponse(
                success=False,
                return_request=return_request,
                tracking_number=tracking_number,
                message=f"Pickup booked with carrier ({tracking_number}) but the return could not be updated: {e}",
                error_code="LEDGER_ERROR",
            )
        if updated is None:
            latest, error_code = await self._write_lost(return_id, return_request)
            await self._release_pickup(return_id, tracking_number)
            return ReturnPickupResponse(
                success=False,
                return_request=latest,
                message=f"Return {return_id} changed while the pickup was being booked; pickup released",
                error_code=error_code,
            )

        await publish_return_pickup_scheduled(
            self.event_bus,
            return_id=return_id,
            tracking_number=tracking_number,
            pickup_id=updated.pickup_id,
            pickup_date=updated.pickup_date,
            pickup_time_slot=updated.pickup_time_slot,
        )
        warnings: List[str] = []
        await self._after_status_change(return_request, updated, "pickup", warnings)

        return ReturnPickupResponse(
            success=True,
            return_request=updated,
            tracking_number=tracking_number,
            pickup_id=updated.pickup_id,
            pickup_date=updated.pickup_date,
            message="Pickup scheduled",
            warnings=warnings,
        )

    async def _release_pickup(self, return_id: str, tracking_number: Optional[str]):
        if not tracking_number:
            return
        response = await self.gateway.cancel_reverse_pickup(tracking_number)
        if not response.ok:
            logger.error(
                f"Orphaned reverse pickup {tracking_number} for return {return_id}: {describe_carrier_failure(response)}"
            )
            return
        await publish_return_pickup_cancelled(self.event_bus, return_id=return_id, tracking_number=tracking_number)

    async def track_return_pickup(self, return_id: str) -> ReturnTrackingResponse:
        """Carrier tracking for a return's reverse pickup"""
        return_request = await self.get_return(return_id)
        if not return_request:
            return ReturnTrackingResponse(success=False, message="Return request not found", error_code="RECORD_NOT_FOUND")
        if not return_request.tracking_number:
            return ReturnTrackingResponse(
                success=False,
                message="No reverse pickup scheduled for this return",
                error_code="RECORD_NOT_FOUND",
            )
        return await self._track(return_request)

    async def _track(self, return_request: ReturnRequest) -> ReturnTrackingResponse:
        tracking_number = return_request.tracking_number
        response = await self.gateway.track_reverse_pickup(tracking_number)
        if not response.ok:
            return ReturnTrackingResponse(
                success=False,
                tracking_number=tracking_number,
                message=response.error or "Unable to fetch tracking information",
                error_code=carrier_error_code(response.outcome),
            )

        data = response.data
        now = self.clock()
        events = [
            ReturnTrackingEvent(**{**event, "timestamp": event.get("timestamp") or now})
            for event in data.get("events") or []
        ]
        tracking_status = ReverseTrackingStatus(data.get("status") or ReverseTrackingStatus.SCHEDULED.value)

        if not response.is_fallback:
            seen = {(e.status, e.timestamp) for e in return_request.tracking_events}
            new_events = [e for e in events if (e.status, e.timestamp) not in seen]
            if new_events:
                try:
                    await self.repository.append_tracking_events(return_request.return_id, new_events)
                except Exception as e:
                    logger.warning(f"Failed to store tracking events for return {return_request.return_id}: {e}")

        return ReturnTrackingResponse(
            success=True,
            tracking_number=tracking_number,
            status=tracking_status,
            carrier_status=data.get("carrier_status"),
            estimated_pickup_date=data.get("estimated_pickup_date"),
            events=events,
            is_fallback=response.is_fallback,
            message="Carrier tracking unavailable; showing assumed state" if response.is_fallback else "Tracking retrieved",
        )

    async def update_return_status_from_tracking(self, tracking_number: str) -> TrackingSyncResponse:
        """Apply carrier reverse tracking to the matching return; writes only on a change"""
        try:
            return_request = await self.repository.get_return_by_tracking_number(tracking_number)
        except Exception as e:
            logger.error(f"Failed to look up return for tracking {tracking_number}: {e}")
            raise ReturnServiceError(f"Failed to look up return: {str(e)}")
        if not return_request:
            return TrackingSyncResponse(
                success=False,
                message="Return request not found for tracking number",
                error_code="RECORD_NOT_FOUND",
            )

        tracking = await self._track(return_request)
        if not tracking.success:
            return TrackingSyncResponse(
                success=False,
                return_id=return_request.return_id,
                old_status=return_request.status,
                message=tracking.message,
                error_code=tracking.error_code,
            )

        unchanged = TrackingSyncResponse(
            success=True,
            return_id=return_request.return_id,
            old_status=return_request.status,
            new_status=return_request.status,
            tracking_status=tracking.status,
            message="Status unchanged",
        )
        if tracking.is_fallback:
            unchanged.message = "Carrier tracking unavailable; status unchanged"
            return unchanged

        target = status_from_tracking(return_request.status, tracking.status)
        if target is None:
            return unchanged

        try:
            updated = await self.repository.update_return_fields(
                return_request.return_id,
                {"status": target, "processed_at": self.clock()},
                expected_status=return_request.status,
            )
        except Exception as e:
            logger.error(f"Failed to apply tracking to return {return_request.return_id}: {e}")
            raise ReturnServiceError(f"Failed to update return from tracking: {str(e)}")
        if updated is None:
            latest, error_code = await self._write_lost(return_request.return_id, return_request)
            return TrackingSyncResponse(
                success=False,
                return_id=return_request.return_id,
                old_status=return_request.status,
                new_status=latest.status if latest else None,
                tracking_status=tracking.status,
                message="Return changed before tracking could be applied",
                error_code=error_code,
            )

        warnings: List[str] = []
        await self._after_status_change(return_request, updated, "carrier_tracking", warnings)
        return TrackingSyncResponse(
            success=True,
            updated=True,
            return_id=updated.return_id,
            old_status=return_request.status,
            new_status=updated.status,
            tracking_status=tracking.status,
            message=f"Status updated from tracking: {tracking.status.value}",
            warnings=warnings,
        )

    async def cancel_return(self, return_id: str, reason: Optional[str] = None) -> ReturnPickupResponse:
        """
        Reject an approved or in-progress return.

        A scheduled reverse pickup is cancelled at the carrier first; if the
        carrier refuses, the return stays as it is.
        """
        return_request = await self.get_return(return_id)
        if not return_request:
            return ReturnPickupResponse(success=False, message="Return request not found", error_code="RECORD_NOT_FOUND")

        if return_request.status not in CANCELLABLE_STATUSES:
            return ReturnPickupResponse(
                success=False,
                return_request=return_request,
                message=f"Cannot cancel a return in status {return_request.status.value}",
                error_code="INVALID_TRANSITION",
            )

        tracking_number = return_request.tracking_number
        if tracking_number:
            response = await self.gateway.cancel_reverse_pickup(tracking_number)
            if not response.ok:
                logger.warning(f"Reverse pickup {tracking_number} not cancelled: {describe_carrier_failure(response)}")
                return ReturnPickupResponse(
                    success=False,
                    return_request=return_request,
                    tracking_number=tracking_number,
                    message=response.error or "Failed to cancel pickup",
                    error_code=carrier_error_code(response.outcome),
                )
            await publish_return_pickup_cancelled(self.event_bus, return_id=return_id, tracking_number=tracking_number)

        now = self.clock()
        note = f"Cancelled on {now.isoformat()}" + (f": {reason}" if reason else "")
        admin_notes = f"{return_request.admin_notes}\n{note}" if return_request.admin_notes else note
        try:
            updated = await self.repository.update_return_fields(
                return_id,
                {"status": ReturnStatus.REJECTED, "processed_at": now, "admin_notes": admin_notes},
                expected_status=return_request.status,
            )
        except Exception as e:
            logger.error(f"Failed to mark return {return_id} cancelled: {e}")
            raise ReturnServiceError(f"Failed to cancel return: {str(e)}")
        if updated is None:
            latest, error_code = await self._write_lost(return_id, return_request)
            return ReturnPickupResponse(
                success=False,
                return_request=latest,
                tracking_number=tracking_number,
                message=f"Return {return_id} changed before it could be cancelled",
                error_code=error_code,
            )

        warnings: List[str] = []
        await self._after_status_change(return_request, updated, "cancellation", warnings)
        return ReturnPickupResponse(
            success=True,
            return_request=updated,
            tracking_number=tracking_number,
            message="Return cancelled",
            warnings=warnings,
        )

    def get_pickup_time_slots(self, pincode: str, date: str) -> PickupSlotsResponse:
        """Pickup windows offered for a pincode on a date"""
        if not is_valid_pincode(pincode):
            return PickupSlotsResponse(
                success=False, pincode=pincode, date=date,
                message="pincode must be 6 digits", error_code="VALIDATION_ERROR",
            )
        try:
            day = datetime.strptime(date, "%Y-%m-%d").date()
        except ValueError:
            return PickupSlotsResponse(
                success=False, pincode=pincode, date=date,
                message="date must be in YYYY-MM-DD format", error_code="VALIDATION_ERROR",
            )
        if day < self.clock().date():
            return PickupSlotsResponse(
                success=False, pincode=pincode, date=date,
                message="date must not be in the past", error_code="VALIDATION_ERROR",
            )
        return PickupSlotsResponse(
            success=True,
            pincode=pincode,
            date=date,
            slots=standard_pickup_slots(),
            message="Pickup slots available",
        )

    # Notifications

    async def _notify(
        self,
        kind: str,
        recipient: str,
        template_data: Dict[str, Any],
        reference_id: str,
        warnings: List[str],
    ) -> bool:
        try:
            result = await self.notification_client.notify(kind, recipient, template_data)
            error = None if result.success else result.error
        except Exception as e:
            error = str(e)

        if error is None:
            return True

        logger.warning(f"Notification {kind} for return {reference_id} not sent: {error}")
        warnings.append(f"Notification {kind} not sent: {error}")
        await publish_notification_failed(
            self.event_bus,
            kind=kind,
            recipient=recipient,
            reference_id=reference_id,
            error=error,
            source=ServiceSource.RETURN_SERVICE,
        )
        return False
