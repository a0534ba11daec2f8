"""
Carrier Gateway Data Models

Typed requests accepted by the gateway and the classified response it
returns. Request models are intentionally lenient: required-field checks
happen in carrier.validation so that a bad request becomes a
VALIDATION_ERROR outcome instead of an exception at the call site.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CarrierOutcome(str, Enum):
    """Classification of every carrier call"""
    SUCCESS = "success"
    NETWORK_ERROR = "network_error"
    AUTH_ERROR = "auth_error"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"


class CarrierCapability(str, Enum):
    """Operations the carrier integration can perform"""
    CREATE_SHIPMENT = "create_shipment"
    GENERATE_WAYBILLS = "generate_waybills"
    TRACK_SHIPMENT = "track_shipment"
    CANCEL_SHIPMENT = "cancel_shipment"
    REQUEST_PICKUP = "request_pickup"
    CREATE_WAREHOUSE = "create_warehouse"
    EDIT_WAREHOUSE = "edit_warehouse"
    SCHEDULE_REVERSE_PICKUP = "schedule_reverse_pickup"
    TRACK_REVERSE_PICKUP = "track_reverse_pickup"
    CANCEL_REVERSE_PICKUP = "cancel_reverse_pickup"
    CHECK_SERVICEABILITY = "check_serviceability"
    RATE_QUOTE = "rate_quote"
    BULK_SERVICEABILITY = "bulk_serviceability"
    EXPECTED_TAT = "expected_tat"


class CarrierApiVersion(str, Enum):
    """Carrier API family; exactly one is active per deployment"""
    EXPRESS = "express"
    LTL = "ltl"


# Request Models

class ParcelAddress(BaseModel):
    """Consignee or return address as the carrier expects it"""
    name: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    country: str = "India"


class CreateShipmentRequest(BaseModel):
    """Forward shipment manifest"""
    order_reference: str = ""
    consignee: ParcelAddress
    return_address: Optional[ParcelAddress] = None
    pickup_location: str = ""
    products_desc: str = ""
    payment_mode: str = "Prepaid"
    cod_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    quantity: int = 1
    weight: float = 0.5
    length: float = 0.0
    width: float = 0.0
    height: float = 0.0
    shipping_mode: str = "Surface"
    waybill: Optional[str] = None
    order_date: Optional[datetime] = None


class PickupRequest(BaseModel):
    """Warehouse pickup request"""
    warehouse_name: str = ""
    pickup_date: str = ""
    pickup_time: str = ""
    expected_package_count: int = 1


class WarehouseRegistration(BaseModel):
    """Warehouse (client pickup location) registration"""
    name: str = ""
    registered_name: Optional[str] = None
    phone: str = ""
    email: Optional[str] = None
    address: str = ""
    city: str = ""
    pin: str = ""
    country: str = "India"
    return_address: str = ""
    return_pin: str = ""
    return_city: str = ""
    return_state: str = ""
    return_country: str = "India"


class WarehouseEdit(BaseModel):
    """Warehouse edit; the carrier identifies the warehouse by name"""
    name: str = ""
    phone: str = ""
    address: str = ""
    pin: Optional[str] = None


class ReversePickupRequest(BaseModel):
    """Reverse pickup of a returned item from the customer"""
    return_reference: str = ""
    order_reference: str = ""
    customer: ParcelAddress
    warehouse_name: str = ""
    products_desc: str = ""
    quantity: int = 1
    total_amount: Decimal = Decimal("0")
    weight: float = 0.5
    pickup_date: str = ""
    pickup_time_slot: Optional[str] = None
    special_instructions: Optional[str] = None


class RateQuoteRequest(BaseModel):
    """Shipping rate quote"""
    pickup_pincode: str = ""
    delivery_pincode: str = ""
    weight: float = 0.5
    length: float = 0.0
    width: float = 0.0
    height: float = 0.0
    cod_amount: Decimal = Decimal("0")
    payment_mode: str = "Prepaid"
    shipping_mode: str = "Surface"



class ExpectedTatRequest(BaseModel):
    """Expected transit time between two pincodes"""
    origin_pincode: str = ""
    destination_pincode: str = ""
    mode_of_transport: str = "S"  # S surface, A air, R rail
    product_type: str = "B2C"
    expected_pickup_date: str = ""


# Response Models

class WarehouseNameCharacter(BaseModel):
    """One character of an analysed warehouse name"""
    position: int
    char: str
    code_point: str
    description: str


class WarehouseNameAnalysis(BaseModel):
    """Structural report on a warehouse name"""
    original: str
    normalized: str
    length: int
    characters: List[WarehouseNameCharacter] = []
    potential_issues: List[str] = []


class AuthDiagnostic(BaseModel):
    """Diagnostic block attached to a pickup AUTH_ERROR"""
    warehouse_name: str
    error_message: str
    name_analysis: WarehouseNameAnalysis
    issues: List[str] = []
    likely_causes: List[str] = []
    recommendations: List[str] = []


class CarrierResponse(BaseModel):
    """Classified result of one gateway operation"""
    outcome: CarrierOutcome
    capability: CarrierCapability
    status_code: Optional[int] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    is_fallback: bool = False
    diagnostics: Optional[AuthDiagnostic] = None

    @property
    def ok(self) -> bool:
        return self.outcome == CarrierOutcome.SUCCESS
