"""
Order Rules Unit Tests

Status derivation, parcel weight and checkout payload validation.

Usage:
    pytest tests/unit/orders/test_order_rules.py -v
"""
from decimal import Decimal

import pytest
from pydantic import ValidationError

from microservices.order_service.models import (
    CompleteOrderRequest,
    PaymentMethod,
    ProductType,
    ShippingAddress,
)
from microservices.order_service.order_service import compute_order_status, parcel_weight
from tests.fixtures import make_item_request, make_order_item, make_shipping_address

pytestmark = [pytest.mark.unit]


class TestComputeOrderStatus:
    """compute_order_status()"""

    def test_cod_is_pending_even_for_digital(self):
        items = [make_item_request(ProductType.DIGITAL)]

        assert compute_order_status(PaymentMethod.COD, items).value == "pending"

    @pytest.mark.parametrize("product_type", [ProductType.POSTER, ProductType.CLOTHING])
    def test_prepaid_physical_is_processing(self, product_type):
        items = [make_item_request(ProductType.DIGITAL), make_item_request(product_type)]

        assert compute_order_status(PaymentMethod.CARD, items).value == "processing"

    def test_prepaid_digital_only_is_completed(self):
        items = [make_item_request(ProductType.DIGITAL), make_item_request(ProductType.DIGITAL, product_id="prod_2")]

        assert compute_order_status(PaymentMethod.UPI, items).value == "completed"


class TestParcelWeight:
    """parcel_weight()"""

    def test_single_poster_is_raised_to_minimum(self):
        assert parcel_weight([make_order_item("order_1", ProductType.POSTER)]) == 0.5

    def test_weight_per_unit(self):
        items = [
            make_order_item("order_1", ProductType.POSTER, quantity=2),
            make_order_item("order_1", ProductType.CLOTHING, quantity=3),
        ]

        assert parcel_weight(items) == 1.7

    def test_digital_items_weigh_nothing(self):
        items = [
            make_order_item("order_1", ProductType.DIGITAL, quantity=10),
            make_order_item("order_1", ProductType.CLOTHING, quantity=2),
        ]

        assert parcel_weight(items) == 0.6


class TestCompleteOrderRequest:
    """Checkout payload validation"""

    def test_physical_items_need_address(self):
        with pytest.raises(ValidationError, match="shipping_address is required"):
            CompleteOrderRequest(
                customer_name="Asha Rao",
                customer_email="asha@example.com",
                customer_phone="9876543210",
                items=[make_item_request(ProductType.POSTER)],
                total_amount=Decimal("1500"),
                payment_method=PaymentMethod.CARD,
            )

    def test_physical_items_need_phone(self):
        with pytest.raises(ValidationError, match="customer_phone is required"):
            CompleteOrderRequest(
                customer_name="Asha Rao",
                customer_email="asha@example.com",
                shipping_address=make_shipping_address(),
                items=[make_item_request(ProductType.CLOTHING)],
                total_amount=Decimal("899"),
                payment_method=PaymentMethod.CARD,
            )

    def test_digital_only_needs_neither(self):
        request = CompleteOrderRequest(
            customer_name="Asha Rao",
            customer_email="asha@example.com",
            items=[make_item_request(ProductType.DIGITAL, unit_price=Decimal("299"))],
            total_amount=Decimal("299"),
            payment_method=PaymentMethod.UPI,
        )

        assert request.shipping_address is None
        assert request.currency == "INR"

    def test_items_required(self):
        with pytest.raises(ValidationError):
            CompleteOrderRequest(
                customer_name="Asha Rao",
                customer_email="asha@example.com",
                items=[],
                total_amount=Decimal("0"),
                payment_method=PaymentMethod.CARD,
            )

    @pytest.mark.parametrize("pincode", ["40005", "4000500", "ABCDEF"])
    def test_pincode_must_be_six_digits(self, pincode):
        with pytest.raises(ValidationError):
            ShippingAddress(address="12 Carter Road", pincode=pincode)
