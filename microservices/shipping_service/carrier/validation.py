"""
Local request validation for carrier calls.

Each validator returns a list of error strings; an empty list means the
request may be sent. No network access.
"""

import re
from datetime import datetime
from typing import List, Optional

from .models import (
    CreateShipmentRequest,
    ExpectedTatRequest,
    ParcelAddress,
    PickupRequest,
    RateQuoteRequest,
    ReversePickupRequest,
    WarehouseEdit,
    WarehouseRegistration,
)

PINCODE_PATTERN = re.compile(r"^\d{6}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PAYMENT_MODES = {"Prepaid", "COD", "Pickup"}
SHIPPING_MODES = {"Express", "Surface"}
MAX_WAYBILL_BATCH = 100
MAX_PINCODE_BATCH = 100
TRANSPORT_MODES = {"S", "A", "R"}
PRODUCT_TYPES = {"B2C", "B2B"}


def is_valid_pincode(pincode: Optional[str]) -> bool:
    return bool(pincode) and bool(PINCODE_PATTERN.match(pincode))


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _validate_date(value: str, field_name: str, errors: List[str]):
    if _blank(value):
        errors.append(f"{field_name} is required")
        return
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        errors.append(f"{field_name} must be in YYYY-MM-DD format")


def _validate_address(address: ParcelAddress, label: str, errors: List[str]):
    if _blank(address.name):
        errors.append(f"{label} name is required")
    if _blank(address.phone):
        errors.append(f"{label} phone is required")
    if _blank(address.address):
        errors.append(f"{label} address is required")
    if not is_valid_pincode(address.pincode):
        errors.append(f"{label} pincode must be 6 digits")


def validate_create_shipment(request: CreateShipmentRequest) -> List[str]:
    errors: List[str] = []
    _validate_address(request.consignee, "consignee", errors)
    if _blank(request.pickup_location):
        errors.append("pickup location (warehouse name) is required")
    if request.payment_mode not in PAYMENT_MODES:
        errors.append(f"payment_mode must be one of {sorted(PAYMENT_MODES)}")
    if request.payment_mode == "COD" and request.cod_amount <= 0:
        errors.append("cod_amount must be positive for COD shipments")
    if request.shipping_mode not in SHIPPING_MODES:
        errors.append(f"shipping_mode must be one of {sorted(SHIPPING_MODES)}")
    if request.weight <= 0:
        errors.append("weight must be positive")
    if request.return_address and request.return_address.pincode and not is_valid_pincode(request.return_address.pincode):
        errors.append("return pincode must be 6 digits")
    return errors


def validate_pickup(request: PickupRequest) -> List[str]:
    errors: List[str] = []
    if _blank(request.warehouse_name):
        errors.append("warehouse name is required")
    _validate_date(request.pickup_date, "pickup_date", errors)
    if _blank(request.pickup_time):
        errors.append("pickup_time is required")
    if request.expected_package_count < 1:
        errors.append("expected_package_count must be at least 1")
    return errors


def validate_warehouse_registration(request: WarehouseRegistration) -> List[str]:
    errors: List[str] = []
    if _blank(request.name):
        errors.append("warehouse name is required")
    if _blank(request.phone):
        errors.append("phone is required")
    if _blank(request.address):
        errors.append("address is required")
    if not is_valid_pincode(request.pin):
        errors.append("pin must be 6 digits")
    if request.email and not EMAIL_PATTERN.match(request.email):
        errors.append("email is not valid")
    if request.return_pin and not is_valid_pincode(request.return_pin):
        errors.append("return_pin must be 6 digits")
    return errors


def validate_warehouse_edit(request: WarehouseEdit) -> List[str]:
    errors: List[str] = []
    if _blank(request.name):
        errors.append("warehouse name is required")
    if _blank(request.phone) and _blank(request.address):
        errors.append("phone or address must be provided")
    if request.pin and not is_valid_pincode(request.pin):
        errors.append("pin must be 6 digits")
    return errors


def validate_reverse_pickup(request: ReversePickupRequest) -> List[str]:
    errors: List[str] = []
    _validate_address(request.customer, "customer", errors)
    if _blank(request.warehouse_name):
        errors.append("warehouse name is required")
    _validate_date(request.pickup_date, "pickup_date", errors)
    if request.quantity < 1:
        errors.append("quantity must be at least 1")
    return errors


def validate_rate_quote(request: RateQuoteRequest) -> List[str]:
    errors: List[str] = []
    if not is_valid_pincode(request.pickup_pincode):
        errors.append("pickup_pincode must be 6 digits")
    if not is_valid_pincode(request.delivery_pincode):
        errors.append("delivery_pincode must be 6 digits")
    if request.weight <= 0:
        errors.append("weight must be positive")
    if request.payment_mode not in PAYMENT_MODES:
        errors.append(f"payment_mode must be one of {sorted(PAYMENT_MODES)}")
    return errors


def validate_expected_tat(request: ExpectedTatRequest) -> List[str]:
    errors: List[str] = []
    if not is_valid_pincode(request.origin_pincode):
        errors.append("origin_pincode must be 6 digits")
    if not is_valid_pincode(request.destination_pincode):
        errors.append("destination_pincode must be 6 digits")
    if request.mode_of_transport not in TRANSPORT_MODES:
        errors.append(f"mode_of_transport must be one of {sorted(TRANSPORT_MODES)}")
    if request.product_type not in PRODUCT_TYPES:
        errors.append(f"product_type must be one of {sorted(PRODUCT_TYPES)}")
    if request.expected_pickup_date:
        _validate_date(request.expected_pickup_date, "expected_pickup_date", errors)
    return errors


def validate_pincode_batch(pincodes: List[str]) -> List[str]:
    if not pincodes or len(pincodes) > MAX_PINCODE_BATCH:
        return [f"between 1 and {MAX_PINCODE_BATCH} pincodes are required"]
    invalid = [p for p in pincodes if not is_valid_pincode(p)]
    if invalid:
        return [f"pincodes must be 6 digits: {', '.join(invalid)}"]
    return []


def validate_reference(value: Optional[str], field_name: str) -> List[str]:
    return [f"{field_name} is required"] if _blank(value) else []


def validate_waybill_count(count: int) -> List[str]:
    if count < 1 or count > MAX_WAYBILL_BATCH:
        return [f"count must be between 1 and {MAX_WAYBILL_BATCH}"]
    return []
