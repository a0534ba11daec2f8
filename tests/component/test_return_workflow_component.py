"""
Return Workflow Component Tests

ReturnService with in-memory return and order stores, the real shipment
ledger as warehouse lookup, and a scriptable carrier gateway.

Usage:
    pytest tests/component/test_return_workflow_component.py -v
"""
import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from microservices.order_service.models import OrderStatus, ProductType
from microservices.return_service.models import (
    CustomerPickupAddress,
    PickupPreferences,
    ReturnCreateRequest,
    ReturnStatus,
    ReturnStatusUpdateRequest,
    ReverseTrackingStatus,
    SchedulePickupRequest,
)
from microservices.return_service.return_service import ReturnService
from microservices.shipping_service.carrier.fallback import DeterministicResponder
from microservices.shipping_service.carrier.models import (
    CarrierCapability,
    CarrierOutcome,
    CarrierResponse,
)
from microservices.shipping_service.shipment_ledger import ShipmentLedger
from tests.component.mocks import MockReturnRepository, MockShipmentLedgerRepository
from tests.fixtures import make_order, make_return_request

pytestmark = [pytest.mark.component, pytest.mark.asyncio]

RETURNS_INBOX = "returns@artstore.test"


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def return_service(mock_return_repo, mock_order_repo, ledger, mock_gateway, mock_notifications, mock_event_bus):
    return ReturnService(
        repository=mock_return_repo,
        orders=mock_order_repo,
        warehouses=ledger,
        gateway=mock_gateway,
        notification_client=mock_notifications,
        event_bus=mock_event_bus,
        returns_email=RETURNS_INBOX,
    )


@pytest.fixture
def order(mock_order_repo):
    order = make_order()
    mock_order_repo.set_order(order)
    return order


def _create_request(order, **overrides) -> ReturnCreateRequest:
    data = {
        "order_id": order.order_id,
        "item_id": order.items[0].item_id,
        "reason": "Print arrived creased",
        "requested_by": order.customer_email,
    }
    data.update(overrides)
    return ReturnCreateRequest(**data)


def _pickup_request(date: str = "2026-03-17") -> SchedulePickupRequest:
    return SchedulePickupRequest(
        customer=CustomerPickupAddress(
            name="Asha Rao",
            phone="9876543210",
            address="12 Carter Road, Bandra West",
            city="Mumbai",
            state="Maharashtra",
            pincode="400050",
        ),
        preferences=PickupPreferences(date=date, time_slot="09:00-12:00"),
    )


class YieldingReturnRepository(MockReturnRepository):
    """Reads give way to other tasks, as a Postgres round trip does"""

    async def get_return(self, return_id):
        current = await super().get_return(return_id)
        await asyncio.sleep(0)
        return current


def _tracking(status: str, events=None, is_fallback: bool = False) -> CarrierResponse:
    return CarrierResponse(
        outcome=CarrierOutcome.SUCCESS,
        capability=CarrierCapability.TRACK_REVERSE_PICKUP,
        data={
            "tracking_number": "RVP5500001",
            "status": status,
            "carrier_status": status.replace("_", " ").title(),
            "estimated_pickup_date": None,
            "events": events or [],
        },
        is_fallback=is_fallback,
    )


# =============================================================================
# Eligibility
# =============================================================================

class TestEligibility:
    """is_eligible_for_return()"""

    async def test_recent_completed_physical_item_is_eligible(self, return_service, order):
        result = await return_service.is_eligible_for_return(order.order_id, order.items[0].item_id)

        assert result.eligible is True
        assert result.reason is None

    async def test_unknown_item(self, return_service, order):
        result = await return_service.is_eligible_for_return(order.order_id, "item_missing")

        assert result.eligible is False
        assert result.reason == "Order item not found"

    async def test_unknown_order(self, return_service):
        result = await return_service.is_eligible_for_return("order_missing", "item_missing")

        assert result.reason == "Order item not found"

    async def test_order_not_completed(self, return_service, mock_order_repo):
        order = make_order(status=OrderStatus.PROCESSING)
        mock_order_repo.set_order(order)

        result = await return_service.is_eligible_for_return(order.order_id, order.items[0].item_id)

        assert result.reason == "Order must be completed before return"

    async def test_window_expired(self, return_service, mock_order_repo):
        order = make_order(created_at=datetime.now(timezone.utc) - timedelta(days=8))
        mock_order_repo.set_order(order)

        result = await return_service.is_eligible_for_return(order.order_id, order.items[0].item_id)

        assert result.reason == "Return window has expired (7 days)"

    async def test_digital_item(self, return_service, mock_order_repo):
        order = make_order(product_types=[ProductType.DIGITAL])
        mock_order_repo.set_order(order)

        result = await return_service.is_eligible_for_return(order.order_id, order.items[0].item_id)

        assert result.reason == "Digital products are not eligible for return"

    async def test_item_already_returned(self, return_service, mock_order_repo):
        order = make_order()
        order = order.model_copy(update={"items": [order.items[0].model_copy(update={"returned": True})]})
        mock_order_repo.set_order(order)

        result = await return_service.is_eligible_for_return(order.order_id, order.items[0].item_id)

        assert result.reason == "Order item has already been returned"

    async def test_active_return_blocks_another(self, return_service, order, mock_return_repo):
        mock_return_repo.set_return(make_return_request(order, status=ReturnStatus.APPROVED))

        result = await return_service.is_eligible_for_return(order.order_id, order.items[0].item_id)

        assert result.reason == "Return request already exists for this item"

    async def test_rejected_return_does_not_block(self, return_service, order, mock_return_repo):
        mock_return_repo.set_return(make_return_request(order, status=ReturnStatus.REJECTED))

        result = await return_service.is_eligible_for_return(order.order_id, order.items[0].item_id)

        assert result.eligible is True


# =============================================================================
# Return requests
# =============================================================================

class TestCreateReturn:
    """create_return_request()"""

    async def test_creates_pending_return_with_item_snapshot(
        self, return_service, order, mock_return_repo, mock_event_bus, mock_notifications
    ):
        result = await return_service.create_return_request(_create_request(order))

        assert result.success is True
        created = result.return_request
        assert created.status == ReturnStatus.PENDING
        assert created.product_title == order.items[0].product_title
        assert created.total_price == Decimal("1500")
        assert mock_return_repo.stored(created.return_id) is not None

        mock_event_bus.assert_event_published("return.requested", {"return_id": created.return_id})
        sent = mock_notifications.sent_of_kind("return_request_received")
        assert len(sent) == 1
        assert sent[0]["recipient"] == RETURNS_INBOX
        assert sent[0]["template_data"]["reason"] == "Print arrived creased"

    async def test_second_request_is_not_eligible(self, return_service, order):
        first = await return_service.create_return_request(_create_request(order))
        second = await return_service.create_return_request(_create_request(order))

        assert first.success is True
        assert second.success is False
        assert second.error_code == "NOT_ELIGIBLE"
        assert second.message == "Return request already exists for this item"

    async def test_ineligible_item_is_refused(self, return_service, mock_order_repo, mock_return_repo):
        order = make_order(product_types=[ProductType.DIGITAL])
        mock_order_repo.set_order(order)

        result = await return_service.create_return_request(_create_request(order))

        assert result.success is False
        assert result.error_code == "NOT_ELIGIBLE"
        assert mock_return_repo.get_call_count("create_return") == 0

    async def test_notification_failure_is_a_warning(self, return_service, order, mock_notifications, mock_event_bus):
        mock_notifications.set_error(ConnectionError("notification service down"))

        result = await return_service.create_return_request(_create_request(order))

        assert result.success is True
        assert any("notification service down" in w for w in result.warnings)
        mock_event_bus.assert_event_published("notification.failed", {"kind": "return_request_received"})

    async def test_customer_returns_listing(self, return_service, order):
        await return_service.create_return_request(_create_request(order))

        result = await return_service.get_customer_returns(order.customer_email)

        assert result.count == 1
        assert result.returns[0].order_id == order.order_id


# =============================================================================
# Operator status changes
# =============================================================================

class TestStatusWorkflow:
    """update_return_status()"""

    async def test_approve_pending_return(self, return_service, order, mock_return_repo, mock_event_bus, mock_notifications):
        pending = make_return_request(order)
        mock_return_repo.set_return(pending)

        result = await return_service.update_return_status(
            pending.return_id, ReturnStatusUpdateRequest(status=ReturnStatus.APPROVED, admin_notes="Looks damaged")
        )

        assert result.success is True
        assert result.return_request.status == ReturnStatus.APPROVED
        assert result.return_request.processed_at is not None
        mock_event_bus.assert_event_published(
            "return.status_changed", {"old_status": "pending", "new_status": "approved", "source": "operator"}
        )
        sent = mock_notifications.sent_of_kind("return_status_update")
        assert sent[0]["recipient"] == order.customer_email

    async def test_pending_cannot_jump_to_completed(self, return_service, order, mock_return_repo):
        pending = make_return_request(order)
        mock_return_repo.set_return(pending)

        result = await return_service.update_return_status(
            pending.return_id, ReturnStatusUpdateRequest(status=ReturnStatus.COMPLETED)
        )

        assert result.success is False
        assert result.error_code == "INVALID_TRANSITION"
        assert mock_return_repo.stored(pending.return_id).status == ReturnStatus.PENDING

    async def test_rejected_is_terminal(self, return_service, order, mock_return_repo):
        rejected = make_return_request(order, status=ReturnStatus.REJECTED)
        mock_return_repo.set_return(rejected)

        result = await return_service.update_return_status(
            rejected.return_id, ReturnStatusUpdateRequest(status=ReturnStatus.APPROVED)
        )

        assert result.error_code == "INVALID_TRANSITION"

    async def test_completion_marks_order_item_returned(self, return_service, order, mock_return_repo, mock_order_repo):
        processing = make_return_request(order, status=ReturnStatus.PROCESSING)
        mock_return_repo.set_return(processing)

        result = await return_service.update_return_status(
            processing.return_id,
            ReturnStatusUpdateRequest(status=ReturnStatus.COMPLETED, refund_amount=Decimal("1500"), refund_method="card"),
        )

        assert result.success is True
        assert result.return_request.refund_amount == Decimal("1500")
        stored_order = await mock_order_repo.get_order(order.order_id)
        assert stored_order.items[0].returned is True

    async def test_unknown_return(self, return_service):
        result = await return_service.update_return_status(
            "return_missing", ReturnStatusUpdateRequest(status=ReturnStatus.APPROVED)
        )

        assert result.error_code == "RECORD_NOT_FOUND"

    async def test_concurrent_approve_and_reject_one_wins(
        self, mock_order_repo, ledger, mock_gateway, mock_notifications, order
    ):
        repo = YieldingReturnRepository()
        service = ReturnService(
            repository=repo,
            orders=mock_order_repo,
            warehouses=ledger,
            gateway=mock_gateway,
            notification_client=mock_notifications,
        )
        pending = make_return_request(order)
        repo.set_return(pending)

        approve, reject = await asyncio.gather(
            service.update_return_status(pending.return_id, ReturnStatusUpdateRequest(status=ReturnStatus.APPROVED)),
            service.update_return_status(pending.return_id, ReturnStatusUpdateRequest(status=ReturnStatus.REJECTED)),
        )

        assert [approve.success, reject.success].count(True) == 1
        winner, loser = (approve, reject) if approve.success else (reject, approve)
        assert loser.error_code == "INVALID_TRANSITION"
        assert repo.stored(pending.return_id).status == winner.return_request.status
        assert loser.return_request.status == winner.return_request.status
        assert len(mock_notifications.sent_of_kind("return_status_update")) == 1

    async def test_return_deleted_during_update(self, return_service, order, mock_return_repo, monkeypatch):
        pending = make_return_request(order)
        mock_return_repo.set_return(pending)
        write = mock_return_repo.update_return_fields

        async def delete_then_write(return_id, fields, expected_status=None):
            mock_return_repo.remove_return(return_id)
            return await write(return_id, fields, expected_status=expected_status)

        monkeypatch.setattr(mock_return_repo, "update_return_fields", delete_then_write)

        result = await return_service.update_return_status(
            pending.return_id, ReturnStatusUpdateRequest(status=ReturnStatus.APPROVED)
        )

        assert result.success is False
        assert result.error_code == "RECORD_NOT_FOUND"
        assert result.return_request is None


# =============================================================================
# Reverse pickups
# =============================================================================

class TestSchedulePickup:
    """schedule_return_pickup()"""

    async def test_success_moves_return_to_processing(self, return_service, order, mock_return_repo, mock_gateway, mock_event_bus):
        approved = make_return_request(order, status=ReturnStatus.APPROVED)
        mock_return_repo.set_return(approved)

        result = await return_service.schedule_return_pickup(approved.return_id, _pickup_request())

        assert result.success is True
        assert result.tracking_number == "RVP5500001"
        stored = mock_return_repo.stored(approved.return_id)
        assert stored.status == ReturnStatus.PROCESSING
        assert stored.tracking_number == "RVP5500001"
        assert stored.pickup_time_slot == "09:00-12:00"
        assert stored.tracking_events[-1].status == "scheduled"

        carrier_request = mock_gateway.last_request("schedule_reverse_pickup")
        assert carrier_request.warehouse_name == "Mumbai Warehouse"
        assert carrier_request.return_reference == approved.return_id
        mock_event_bus.assert_event_published("return.pickup_scheduled", {"tracking_number": "RVP5500001"})

    async def test_carrier_failure_leaves_return_unchanged(self, return_service, order, mock_return_repo, mock_gateway):
        approved = make_return_request(order, status=ReturnStatus.APPROVED)
        mock_return_repo.set_return(approved)
        mock_gateway.set_failure(
            "schedule_reverse_pickup",
            CarrierCapability.SCHEDULE_REVERSE_PICKUP,
            CarrierOutcome.VALIDATION_ERROR,
            error="pincode not serviceable for reverse pickup",
        )

        result = await return_service.schedule_return_pickup(approved.return_id, _pickup_request())

        assert result.success is False
        assert result.error_code == "VALIDATION_ERROR"
        assert mock_return_repo.stored(approved.return_id) == approved
        assert mock_return_repo.get_call_count("update_return_fields") == 0

    async def test_fallback_response_is_not_a_booking(self, return_service, order, mock_return_repo, mock_gateway):
        approved = make_return_request(order, status=ReturnStatus.APPROVED)
        mock_return_repo.set_return(approved)
        mock_gateway.set_response("schedule_reverse_pickup", CarrierResponse(
            outcome=CarrierOutcome.SUCCESS,
            capability=CarrierCapability.SCHEDULE_REVERSE_PICKUP,
            data={},
            error="carrier returned HTTP 503",
            is_fallback=True,
        ))

        result = await return_service.schedule_return_pickup(approved.return_id, _pickup_request())

        assert result.success is False
        assert result.error_code == "NETWORK_ERROR"
        assert mock_return_repo.stored(approved.return_id).status == ReturnStatus.APPROVED

    async def test_requires_approved_status(self, return_service, order, mock_return_repo, mock_gateway):
        pending = make_return_request(order)
        mock_return_repo.set_return(pending)

        result = await return_service.schedule_return_pickup(pending.return_id, _pickup_request())

        assert result.error_code == "INVALID_TRANSITION"
        mock_gateway.assert_not_called("schedule_reverse_pickup")

    async def test_requires_active_warehouse(
        self, mock_return_repo, mock_order_repo, mock_gateway, mock_notifications, order
    ):
        service = ReturnService(
            repository=mock_return_repo,
            orders=mock_order_repo,
            warehouses=ShipmentLedger(MockShipmentLedgerRepository()),
            gateway=mock_gateway,
            notification_client=mock_notifications,
        )
        approved = make_return_request(order, status=ReturnStatus.APPROVED)
        mock_return_repo.set_return(approved)

        result = await service.schedule_return_pickup(approved.return_id, _pickup_request())

        assert result.error_code == "WAREHOUSE_INACTIVE"
        mock_gateway.assert_not_called("schedule_reverse_pickup")

    async def test_update_failure_after_booking_reports_tracking_number(
        self, return_service, order, mock_return_repo
    ):
        approved = make_return_request(order, status=ReturnStatus.APPROVED)
        mock_return_repo.set_return(approved)
        mock_return_repo.set_error("update_return_fields", RuntimeError("deadlock detected"))

        result = await return_service.schedule_return_pickup(approved.return_id, _pickup_request())

        assert result.success is False
        assert result.error_code == "LEDGER_ERROR"
        assert result.tracking_number == "RVP5500001"

    async def test_notification_failure_is_a_warning(self, return_service, order, mock_return_repo, mock_notifications):
        approved = make_return_request(order, status=ReturnStatus.APPROVED)
        mock_return_repo.set_return(approved)
        mock_notifications.set_failure("smtp down")

        result = await return_service.schedule_return_pickup(approved.return_id, _pickup_request())

        assert result.success is True
        assert result.warnings == ["Notification return_status_update not sent: smtp down"]

    async def test_return_cancelled_while_booking_releases_pickup(
        self, return_service, order, mock_return_repo, mock_gateway, mock_event_bus, monkeypatch
    ):
        approved = make_return_request(order, status=ReturnStatus.APPROVED)
        mock_return_repo.set_return(approved)
        book = mock_gateway.schedule_reverse_pickup

        async def book_while_operator_rejects(request):
            response = await book(request)
            mock_return_repo.set_return(approved.model_copy(update={"status": ReturnStatus.REJECTED}))
            return response

        monkeypatch.setattr(mock_gateway, "schedule_reverse_pickup", book_while_operator_rejects)

        result = await return_service.schedule_return_pickup(approved.return_id, _pickup_request())

        assert result.success is False
        assert result.error_code == "INVALID_TRANSITION"
        assert mock_return_repo.stored(approved.return_id).status == ReturnStatus.REJECTED
        mock_gateway.assert_called("cancel_reverse_pickup")
        mock_event_bus.assert_event_published("return.pickup_cancelled", {"tracking_number": "RVP5500001"})


# =============================================================================
# Tracking
# =============================================================================

class TestTrackingSync:
    """track_return_pickup() and update_return_status_from_tracking()"""

    @pytest.fixture
    def in_pickup(self, order, mock_return_repo):
        processing = make_return_request(order, status=ReturnStatus.PROCESSING, tracking_number="RVP5500001")
        mock_return_repo.set_return(processing)
        return processing

    async def test_processed_scan_completes_return(self, return_service, in_pickup, mock_gateway, mock_return_repo, mock_order_repo):
        scanned_at = datetime(2026, 3, 18, 14, 0, tzinfo=timezone.utc)
        mock_gateway.set_response("track_reverse_pickup", _tracking("processed", events=[
            {"status": "processed", "location": "Andheri", "timestamp": scanned_at, "description": "Closed"},
        ]))

        result = await return_service.update_return_status_from_tracking("RVP5500001")

        assert result.success is True
        assert result.updated is True
        assert result.old_status == ReturnStatus.PROCESSING
        assert result.new_status == ReturnStatus.COMPLETED
        assert mock_return_repo.stored(in_pickup.return_id).status == ReturnStatus.COMPLETED
        stored_order = await mock_order_repo.get_order(in_pickup.order_id)
        assert stored_order.items[0].returned is True

    async def test_same_status_is_not_written(self, return_service, in_pickup, mock_gateway, mock_return_repo):
        mock_gateway.set_response("track_reverse_pickup", _tracking("picked_up"))

        result = await return_service.update_return_status_from_tracking("RVP5500001")

        assert result.success is True
        assert result.updated is False
        assert result.tracking_status == ReverseTrackingStatus.PICKED_UP
        assert mock_return_repo.get_call_count("update_return_fields") == 0

    async def test_fallback_tracking_leaves_status(self, return_service, in_pickup, mock_gateway, mock_return_repo):
        mock_gateway.set_response("track_reverse_pickup", CarrierResponse(
            outcome=CarrierOutcome.SUCCESS,
            capability=CarrierCapability.TRACK_REVERSE_PICKUP,
            data=DeterministicResponder().reverse_tracking("RVP5500001"),
            error="carrier API token not configured",
            is_fallback=True,
        ))

        result = await return_service.update_return_status_from_tracking("RVP5500001")

        assert result.updated is False
        assert result.message == "Carrier tracking unavailable; status unchanged"
        assert mock_return_repo.get_call_count("append_tracking_events") == 0

    async def test_unknown_tracking_number(self, return_service):
        result = await return_service.update_return_status_from_tracking("RVP0000000")

        assert result.success is False
        assert result.error_code == "RECORD_NOT_FOUND"

    async def test_track_appends_new_events(self, return_service, in_pickup, mock_gateway, mock_return_repo):
        scanned_at = datetime(2026, 3, 17, 10, 0, tzinfo=timezone.utc)
        mock_gateway.set_response("track_reverse_pickup", _tracking("picked_up", events=[
            {"status": "picked_up", "location": "Bandra", "timestamp": scanned_at, "description": "Picked up"},
        ]))

        first = await return_service.track_return_pickup(in_pickup.return_id)
        await return_service.track_return_pickup(in_pickup.return_id)

        assert first.success is True
        assert first.status == ReverseTrackingStatus.PICKED_UP
        assert len(mock_return_repo.stored(in_pickup.return_id).tracking_events) == 1

    async def test_track_without_pickup(self, return_service, order, mock_return_repo):
        approved = make_return_request(order, status=ReturnStatus.APPROVED)
        mock_return_repo.set_return(approved)

        result = await return_service.track_return_pickup(approved.return_id)

        assert result.success is False
        assert result.error_code == "RECORD_NOT_FOUND"


# =============================================================================
# Cancellation and slots
# =============================================================================

class TestCancelReturn:
    """cancel_return()"""

    async def test_cancel_with_scheduled_pickup(self, return_service, order, mock_return_repo, mock_gateway, mock_event_bus):
        processing = make_return_request(order, status=ReturnStatus.PROCESSING, tracking_number="RVP5500001")
        mock_return_repo.set_return(processing)

        result = await return_service.cancel_return(processing.return_id, "customer changed mind")

        assert result.success is True
        stored = mock_return_repo.stored(processing.return_id)
        assert stored.status == ReturnStatus.REJECTED
        assert "customer changed mind" in stored.admin_notes
        mock_gateway.assert_called("cancel_reverse_pickup")
        mock_event_bus.assert_event_published("return.pickup_cancelled", {"tracking_number": "RVP5500001"})

    async def test_carrier_refusal_keeps_return(self, return_service, order, mock_return_repo, mock_gateway):
        processing = make_return_request(order, status=ReturnStatus.PROCESSING, tracking_number="RVP5500001")
        mock_return_repo.set_return(processing)
        mock_gateway.set_failure(
            "cancel_reverse_pickup",
            CarrierCapability.CANCEL_REVERSE_PICKUP,
            CarrierOutcome.VALIDATION_ERROR,
            error="Pickup already completed",
        )

        result = await return_service.cancel_return(processing.return_id)

        assert result.success is False
        assert result.error_code == "VALIDATION_ERROR"
        assert mock_return_repo.stored(processing.return_id).status == ReturnStatus.PROCESSING

    async def test_approved_without_pickup_skips_carrier(self, return_service, order, mock_return_repo, mock_gateway):
        approved = make_return_request(order, status=ReturnStatus.APPROVED)
        mock_return_repo.set_return(approved)

        result = await return_service.cancel_return(approved.return_id)

        assert result.success is True
        mock_gateway.assert_not_called("cancel_reverse_pickup")

    async def test_pending_return_cannot_be_cancelled(self, return_service, order, mock_return_repo):
        pending = make_return_request(order)
        mock_return_repo.set_return(pending)

        result = await return_service.cancel_return(pending.return_id)

        assert result.error_code == "INVALID_TRANSITION"

    async def test_notification_failure_is_a_warning(self, return_service, order, mock_return_repo, mock_notifications):
        approved = make_return_request(order, status=ReturnStatus.APPROVED)
        mock_return_repo.set_return(approved)
        mock_notifications.set_error(ConnectionError("notification service down"))

        result = await return_service.cancel_return(approved.return_id)

        assert result.success is True
        assert any("notification service down" in w for w in result.warnings)


class TestPickupSlots:
    """get_pickup_time_slots()"""

    async def test_four_standard_slots(self, return_service):
        tomorrow = (datetime.now(timezone.utc) + timedelta(days=1)).date().isoformat()

        result = return_service.get_pickup_time_slots("400050", tomorrow)

        assert result.success is True
        assert len(result.slots) == 4
        assert result.slots[0]["slot"] == "09:00-12:00"

    async def test_bad_pincode(self, return_service):
        result = return_service.get_pickup_time_slots("40005", "2030-01-01")

        assert result.error_code == "VALIDATION_ERROR"

    async def test_past_date(self, return_service):
        result = return_service.get_pickup_time_slots("400050", "2020-01-01")

        assert result.error_code == "VALIDATION_ERROR"
