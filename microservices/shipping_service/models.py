"""
Shipping Service Data Models

Pydantic models for the shipment ledger (warehouses, shipments, pickups)
and the admin shipping API.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .carrier.models import AuthDiagnostic


class ShipmentStatus(str, Enum):
    """Shipment lifecycle status"""
    PENDING = "pending"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PickupStatus(str, Enum):
    """Warehouse pickup sub-state"""
    SCHEDULED = "scheduled"
    PICKED_UP = "picked_up"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentMode(str, Enum):
    """Carrier payment mode"""
    PREPAID = "Prepaid"
    COD = "COD"
    PICKUP = "Pickup"


class ShippingMode(str, Enum):
    """Carrier service level"""
    EXPRESS = "Express"
    SURFACE = "Surface"


class WaybillSource(str, Enum):
    """Who issued the waybill"""
    CARRIER = "carrier"
    LOCAL = "local"


# Core Models

class TrackingEvent(BaseModel):
    """One entry of an append-only tracking history"""
    status: str
    location: Optional[str] = None
    timestamp: datetime
    description: Optional[str] = None
    source: str = "carrier"


class Warehouse(BaseModel):
    """Pickup location registered with the carrier"""
    warehouse_id: str
    name: str
    registered_name: Optional[str] = None
    phone: str
    email: Optional[str] = None
    address: str
    city: Optional[str] = None
    state: Optional[str] = None
    pin: str
    country: str = "India"
    return_address: Optional[str] = None
    return_pin: Optional[str] = None
    return_city: Optional[str] = None
    return_state: Optional[str] = None
    return_country: Optional[str] = "India"
    is_active: bool = True
    carrier_registered: bool = False
    created_at: datetime
    updated_at: datetime


class Shipment(BaseModel):
    """Ledger record of a forward shipment"""
    shipment_id: str
    waybill: str
    waybill_source: WaybillSource = WaybillSource.CARRIER
    order_id: Optional[str] = None
    warehouse_id: Optional[str] = None

    customer_name: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    delivery_address: str
    delivery_city: Optional[str] = None
    delivery_state: Optional[str] = None
    delivery_pincode: str
    delivery_country: str = "India"

    return_address: Optional[str] = None
    return_pincode: Optional[str] = None
    return_city: Optional[str] = None
    return_state: Optional[str] = None

    products_desc: Optional[str] = None
    payment_mode: PaymentMode = PaymentMode.PREPAID
    cod_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    weight: float = 0.5
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    shipping_mode: ShippingMode = ShippingMode.SURFACE

    status: ShipmentStatus = ShipmentStatus.PENDING
    pickup_id: Optional[str] = None
    pickup_date: Optional[str] = None
    pickup_status: Optional[PickupStatus] = None
    pickup_attempts: int = 0

    carrier_status: Optional[str] = None
    carrier_error: Optional[str] = None
    tracking_url: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    tracking_events: List[TrackingEvent] = []
    notes: Optional[str] = None

    created_at: datetime
    updated_at: datetime


# Request Models

class WarehouseCreateRequest(BaseModel):
    """Create warehouse request"""
    name: str = Field(..., min_length=1, description="Name exactly as registered with the carrier")
    registered_name: Optional[str] = None
    phone: str = Field(..., min_length=1)
    email: Optional[str] = None
    address: str = Field(..., min_length=1)
    city: Optional[str] = None
    state: Optional[str] = None
    pin: str = Field(..., pattern=r"^\d{6}$")
    country: str = "India"
    return_address: Optional[str] = None
    return_pin: Optional[str] = Field(None, pattern=r"^\d{6}$")
    return_city: Optional[str] = None
    return_state: Optional[str] = None
    return_country: Optional[str] = "India"
    is_active: bool = True
    register_with_carrier: bool = Field(default=True, description="Also register the warehouse with the carrier")


class WarehouseUpdateRequest(BaseModel):
    """Partial warehouse update"""
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pin: Optional[str] = Field(None, pattern=r"^\d{6}$")
    return_address: Optional[str] = None
    return_pin: Optional[str] = Field(None, pattern=r"^\d{6}$")
    return_city: Optional[str] = None
    return_state: Optional[str] = None
    is_active: Optional[bool] = None
    sync_with_carrier: bool = True


class ShipmentCreateRequest(BaseModel):
    """Admin shipment creation request"""
    order_id: Optional[str] = None
    warehouse_id: Optional[str] = Field(None, description="Defaults to the first active warehouse")
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    customer_email: Optional[str] = None
    delivery_address: str = Field(..., min_length=1)
    delivery_city: Optional[str] = None
    delivery_state: Optional[str] = None
    delivery_pincode: str
    delivery_country: str = "India"
    products_desc: Optional[str] = None
    payment_mode: PaymentMode = PaymentMode.PREPAID
    cod_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    quantity: int = 1
    weight: float = 0.5
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    shipping_mode: ShippingMode = ShippingMode.SURFACE
    waybill: Optional[str] = None
    notes: Optional[str] = None


class ShipmentStatusUpdateRequest(BaseModel):
    """Manual shipment status change"""
    status: ShipmentStatus
    notes: Optional[str] = None


class PickupScheduleRequest(BaseModel):
    """Schedule a carrier pickup at a warehouse"""
    warehouse_id: str
    pickup_date: str = Field(..., description="YYYY-MM-DD")
    pickup_time: str = Field(default="11:00:00", description="HH:MM:SS")
    expected_package_count: int = Field(default=1, ge=1)
    waybills: List[str] = Field(default_factory=list, description="Ledger shipments covered by this pickup")


class WarehouseNameCheckRequest(BaseModel):
    """Warehouse name diagnostics request"""
    name: str
    compare_with: Optional[str] = None
    error_message: Optional[str] = None


class ShipmentFilter(BaseModel):
    """Ledger query filter"""
    status: Optional[ShipmentStatus] = None
    order_id: Optional[str] = None
    warehouse_id: Optional[str] = None
    waybill_source: Optional[WaybillSource] = None
    search: Optional[str] = Field(None, description="Matches waybill, customer name or phone")
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


# Response Models

class ShipmentResponse(BaseModel):
    """Shipment operation response"""
    success: bool
    shipment: Optional[Shipment] = None
    message: str
    error_code: Optional[str] = None
    carrier_outcome: Optional[str] = None


class ShipmentListResponse(BaseModel):
    """Shipment list response"""
    shipments: List[Shipment]
    count: int
    limit: int
    offset: int


class WarehouseResponse(BaseModel):
    """Warehouse operation response"""
    success: bool
    warehouse: Optional[Warehouse] = None
    message: str
    error_code: Optional[str] = None
    carrier_outcome: Optional[str] = None


class WarehouseListResponse(BaseModel):
    """Warehouse list response"""
    warehouses: List[Warehouse]
    count: int


class PickupResponse(BaseModel):
    """Pickup request response"""
    success: bool
    status: int
    message: str
    pickup_id: Optional[str] = None
    pickup_date: Optional[str] = None
    error_code: Optional[str] = None
    diagnostics: Optional[AuthDiagnostic] = None


class CarrierLookupResponse(BaseModel):
    """Serviceability / rate / waybill / tracking lookup response"""
    success: bool
    data: Dict[str, Any] = {}
    is_fallback: bool = False
    message: str
    error_code: Optional[str] = None


class ShipmentStats(BaseModel):
    """Ledger counts"""
    total_shipments: int = 0
    by_status: Dict[str, int] = {}
    local_waybills: int = 0
    pending_pickups: int = 0
