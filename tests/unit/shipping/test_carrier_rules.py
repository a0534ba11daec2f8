"""
Carrier Rules Unit Tests

Outcome classification, local validation, endpoint resolution, status
normalization and the deterministic fallback responder.

Usage:
    pytest tests/unit/shipping/test_carrier_rules.py -v
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from microservices.shipping_service.carrier.classification import (
    body_reports_rejection,
    classify_status_code,
    extract_error_message,
)
from microservices.shipping_service.carrier.endpoints import MANIFEST_FORM, resolve_endpoint
from microservices.shipping_service.carrier.fallback import (
    DeterministicResponder,
    is_local_waybill,
    local_waybill_for,
    standard_pickup_slots,
)
from microservices.shipping_service.carrier.gateway import normalize_forward_status, normalize_reverse_status
from microservices.shipping_service.carrier.models import (
    CarrierApiVersion,
    CarrierCapability,
    CarrierOutcome,
    CreateShipmentRequest,
    ExpectedTatRequest,
    ParcelAddress,
    PickupRequest,
    RateQuoteRequest,
)
from microservices.shipping_service.carrier.validation import (
    is_valid_pincode,
    validate_create_shipment,
    validate_expected_tat,
    validate_pickup,
    validate_pincode_batch,
    validate_rate_quote,
    validate_waybill_count,
)

pytestmark = [pytest.mark.unit]

FIXED_NOW = datetime(2026, 3, 15, 10, 30, tzinfo=timezone.utc)


# =============================================================================
# Classification
# =============================================================================

class TestClassifyStatusCode:
    """classify_status_code()"""

    @pytest.mark.parametrize("status_code,outcome", [
        (200, CarrierOutcome.SUCCESS),
        (201, CarrierOutcome.SUCCESS),
        (400, CarrierOutcome.VALIDATION_ERROR),
        (401, CarrierOutcome.AUTH_ERROR),
        (403, CarrierOutcome.AUTH_ERROR),
        (404, CarrierOutcome.NOT_FOUND),
        (422, CarrierOutcome.VALIDATION_ERROR),
        (429, CarrierOutcome.NETWORK_ERROR),
        (500, CarrierOutcome.NETWORK_ERROR),
        (504, CarrierOutcome.NETWORK_ERROR),
    ])
    def test_status_mapping(self, status_code, outcome):
        assert classify_status_code(status_code) == outcome


class TestErrorExtraction:
    """extract_error_message() and body_reports_rejection()"""

    def test_prefers_rmk(self):
        assert extract_error_message({"rmk": "Crashing while saving package", "message": "x"}) == \
            "Crashing while saving package"

    def test_nested_error(self):
        assert extract_error_message({"error": {"message": "pickup_date in past"}}) == "pickup_date in past"

    def test_package_remarks(self):
        body = {"packages": [{"remarks": ["Non serviceable pincode"]}]}

        assert extract_error_message(body) == "Non serviceable pincode"

    def test_plain_text_body(self):
        assert extract_error_message("  Bad Gateway ") == "Bad Gateway"
        assert extract_error_message("") is None

    def test_success_false_is_rejection(self):
        assert body_reports_rejection({"success": False, "rmk": "Invalid pickup location"}) == "Invalid pickup location"

    def test_failed_package_is_rejection(self):
        body = {"success": True, "packages": [{"status": "Fail", "remarks": ["Duplicate waybill"]}]}

        assert body_reports_rejection(body) == "Duplicate waybill"

    def test_successful_body(self):
        assert body_reports_rejection({"success": True, "packages": [{"status": "Success"}]}) is None
        assert body_reports_rejection(["1490110000001"]) is None


# =============================================================================
# Validation
# =============================================================================

class TestValidation:
    """carrier.validation"""

    @pytest.mark.parametrize("pincode,valid", [
        ("400050", True),
        ("40005", False),
        ("4000500", False),
        ("40005a", False),
        ("", False),
        (None, False),
    ])
    def test_pincode(self, pincode, valid):
        assert is_valid_pincode(pincode) is valid

    def test_cod_shipment_needs_positive_amount(self):
        request = CreateShipmentRequest(
            consignee=ParcelAddress(name="Asha", phone="9876543210", address="Bandra", pincode="400050"),
            pickup_location="Mumbai Warehouse",
            payment_mode="COD",
        )

        assert validate_create_shipment(request) == ["cod_amount must be positive for COD shipments"]

    def test_shipment_collects_all_errors(self):
        request = CreateShipmentRequest(consignee=ParcelAddress(), payment_mode="Cash", weight=0)

        errors = validate_create_shipment(request)

        assert "consignee name is required" in errors
        assert "consignee pincode must be 6 digits" in errors
        assert "pickup location (warehouse name) is required" in errors
        assert "weight must be positive" in errors
        assert any(e.startswith("payment_mode must be one of") for e in errors)

    def test_pickup_date_format(self):
        request = PickupRequest(warehouse_name="Mumbai Warehouse", pickup_date="16/03/2026", pickup_time="11:00:00")

        assert validate_pickup(request) == ["pickup_date must be in YYYY-MM-DD format"]

    def test_rate_quote_pincodes(self):
        errors = validate_rate_quote(RateQuoteRequest(pickup_pincode="400069", delivery_pincode="5600"))

        assert errors == ["delivery_pincode must be 6 digits"]

    @pytest.mark.parametrize("count,ok", [(0, False), (1, True), (100, True), (101, False)])
    def test_waybill_batch_size(self, count, ok):
        assert (validate_waybill_count(count) == []) is ok

    def test_pincode_batch(self):
        assert validate_pincode_batch([]) == ["between 1 and 100 pincodes are required"]
        assert validate_pincode_batch(["400050"] * 101) == ["between 1 and 100 pincodes are required"]
        assert validate_pincode_batch(["400050", "56000A"]) == ["pincodes must be 6 digits: 56000A"]

    def test_expected_tat_modes(self):
        errors = validate_expected_tat(ExpectedTatRequest(
            origin_pincode="400050", destination_pincode="560001", mode_of_transport="X", product_type="C2C",
        ))

        assert errors == ["mode_of_transport must be one of ['A', 'R', 'S']", "product_type must be one of ['B2B', 'B2C']"]


# =============================================================================
# Endpoints and statuses
# =============================================================================

class TestEndpoints:
    """resolve_endpoint()"""

    def test_express_manifest_is_form_encoded(self):
        endpoint = resolve_endpoint(CarrierApiVersion.EXPRESS, CarrierCapability.CREATE_SHIPMENT)

        assert endpoint.method == "POST"
        assert endpoint.path == "/api/cmu/create.json"
        assert endpoint.body == MANIFEST_FORM

    @pytest.mark.parametrize("capability", [
        CarrierCapability.CREATE_SHIPMENT,
        CarrierCapability.SCHEDULE_REVERSE_PICKUP,
        CarrierCapability.CANCEL_SHIPMENT,
    ])
    def test_ltl_lacks_manifest_capabilities(self, capability):
        assert resolve_endpoint(CarrierApiVersion.LTL, capability) is None

    def test_every_capability_exists_in_express(self):
        for capability in CarrierCapability:
            assert resolve_endpoint(CarrierApiVersion.EXPRESS, capability) is not None


class TestStatusNormalization:
    """Carrier status strings to internal statuses"""

    @pytest.mark.parametrize("carrier_status,status", [
        ("Manifested", "pending"),
        ("In Transit", "in_transit"),
        ("Delivered", "delivered"),
        ("RTO", "cancelled"),
        ("Something New", "in_transit"),
        (None, "pending"),
    ])
    def test_forward(self, carrier_status, status):
        assert normalize_forward_status(carrier_status) == status

    @pytest.mark.parametrize("carrier_status,status", [
        ("Open", "scheduled"),
        ("Picked Up", "picked_up"),
        ("DTO", "delivered_to_warehouse"),
        ("Closed", "processed"),
        ("Canceled", "cancelled"),
        (None, "scheduled"),
    ])
    def test_reverse(self, carrier_status, status):
        assert normalize_reverse_status(carrier_status) == status


# =============================================================================
# Fallback
# =============================================================================

class TestDeterministicResponder:
    """Fallback payloads are pure functions of their inputs"""

    def test_local_waybill_is_stable(self):
        first = local_waybill_for("order_test_1", "400050")

        assert first == local_waybill_for("order_test_1", "400050")
        assert first != local_waybill_for("order_test_1", "400051")
        assert first.startswith("LOCAL-")
        assert len(first) == len("LOCAL-") + 10
        assert is_local_waybill(first)
        assert not is_local_waybill("1490110000001")

    @pytest.mark.parametrize("pincode,zone,reverse", [
        ("110001", "North", False),
        ("400050", "West", True),
        ("560001", "South", True),
        ("700001", "East", False),
    ])
    def test_serviceable_zones(self, pincode, zone, reverse):
        result = DeterministicResponder().serviceability(pincode)

        assert result["serviceable"] is True
        assert result["zone"] == zone
        assert result["reverse_pickup"] is reverse

    @pytest.mark.parametrize("pincode", ["900001", "012345"])
    def test_unserviceable_prefixes(self, pincode):
        result = DeterministicResponder().serviceability(pincode)

        assert result["serviceable"] is False
        assert result["estimated_days"] is None

    def test_rate_quote_breakdown(self):
        quote = DeterministicResponder().rate_quote(
            RateQuoteRequest(pickup_pincode="400069", delivery_pincode="560001", weight=0.5)
        )

        assert quote["freight"] == Decimal("50.00")
        assert quote["fuel_surcharge"] == Decimal("5.00")
        assert quote["cod_fee"] == Decimal("0.00")
        assert quote["service_tax"] == Decimal("9.90")
        assert quote["total_amount"] == Decimal("64.90")
        assert quote["delivery_days"] == 5

    def test_cod_fee_has_minimum(self):
        quote = DeterministicResponder().rate_quote(RateQuoteRequest(
            pickup_pincode="400069", delivery_pincode="400050", payment_mode="COD", cod_amount=Decimal("500"),
        ))

        assert quote["cod_fee"] == Decimal("30.00")

    def test_waybills_follow_clock(self):
        result = DeterministicResponder(clock=lambda: FIXED_NOW).waybills(2)

        assert result["waybills"] == ["LOCAL-20260315103000001", "LOCAL-20260315103000002"]

    def test_reverse_tracking_assumes_next_day(self):
        result = DeterministicResponder(clock=lambda: FIXED_NOW).reverse_tracking("RVP5500001")

        assert result["status"] == "scheduled"
        assert result["estimated_pickup_date"] == "2026-03-16"
        assert result["events"][0]["source"] == "local"

    def test_bulk_serviceability_keeps_order(self):
        result = DeterministicResponder().bulk_serviceability(["560001", "999999"])

        assert [(r["pincode"], r["serviceable"]) for r in result["results"]] == [("560001", True), ("999999", False)]

    @pytest.mark.parametrize("mode,days,delivery", [("A", 3, "2026-03-18"), ("S", 5, "2026-03-20")])
    def test_expected_tat_by_mode(self, mode, days, delivery):
        result = DeterministicResponder(clock=lambda: FIXED_NOW).expected_tat(
            ExpectedTatRequest(origin_pincode="400050", destination_pincode="560001", mode_of_transport=mode)
        )

        assert result["expected_pickup_date"] == "2026-03-15"
        assert result["tat_days"] == days
        assert result["expected_delivery_date"] == delivery

    def test_pickup_slots(self):
        slots = standard_pickup_slots()

        assert [s["slot"] for s in slots] == ["09:00-12:00", "12:00-15:00", "15:00-18:00", "18:00-21:00"]
