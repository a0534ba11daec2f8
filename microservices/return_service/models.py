"""
Return Service Data Models

Pydantic models for return requests and reverse pickups.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ReturnStatus(str, Enum):
    """Return request status"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSING = "processing"
    COMPLETED = "completed"


ACTIVE_RETURN_STATUSES = {ReturnStatus.PENDING, ReturnStatus.APPROVED, ReturnStatus.PROCESSING}


class ReverseTrackingStatus(str, Enum):
    """Normalized reverse pickup status reported by the carrier"""
    SCHEDULED = "scheduled"
    PICKED_UP = "picked_up"
    DELIVERED_TO_WAREHOUSE = "delivered_to_warehouse"
    PROCESSED = "processed"
    CANCELLED = "cancelled"


class ReturnTrackingEvent(BaseModel):
    """One entry of a reverse pickup's tracking history"""
    status: str
    location: Optional[str] = None
    timestamp: datetime
    description: Optional[str] = None
    source: str = "carrier"


class ReturnRequest(BaseModel):
    """Customer return of one order item"""
    return_id: str
    order_id: str
    order_item_id: str

    # Product snapshot at request time
    product_id: str
    product_title: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    reason: str
    customer_notes: Optional[str] = None
    requested_by: str
    status: ReturnStatus = ReturnStatus.PENDING
    admin_notes: Optional[str] = None

    tracking_number: Optional[str] = None
    pickup_id: Optional[str] = None
    pickup_date: Optional[str] = None
    pickup_time_slot: Optional[str] = None
    tracking_events: List[ReturnTrackingEvent] = []

    refund_amount: Optional[Decimal] = None
    refund_method: Optional[str] = None

    requested_at: datetime
    processed_at: Optional[datetime] = None
    updated_at: datetime


# Request Models

class ReturnCreateRequest(BaseModel):
    """Customer return request"""
    order_id: str = Field(..., min_length=1)
    item_id: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1)
    customer_notes: Optional[str] = None
    requested_by: str = Field(..., min_length=1, description="Customer email or user ID")


class ReturnStatusUpdateRequest(BaseModel):
    """Operator status change"""
    status: ReturnStatus
    admin_notes: Optional[str] = None
    refund_amount: Optional[Decimal] = Field(None, ge=0)
    refund_method: Optional[str] = None


class CustomerPickupAddress(BaseModel):
    """Where the carrier collects the returned item"""
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str = ""
    state: str = ""
    pincode: str


class PickupPreferences(BaseModel):
    """Customer's preferred pickup window"""
    date: str = Field(..., description="YYYY-MM-DD")
    time_slot: Optional[str] = None
    special_instructions: Optional[str] = None


class SchedulePickupRequest(BaseModel):
    """Reverse pickup scheduling request"""
    customer: CustomerPickupAddress
    preferences: PickupPreferences


class ReturnFilter(BaseModel):
    """Return list filter"""
    status: Optional[ReturnStatus] = None
    order_id: Optional[str] = None
    requested_by: Optional[str] = None
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


# Response Models

class ReturnEligibility(BaseModel):
    """Whether an order item may be returned"""
    eligible: bool
    reason: Optional[str] = None


class ReturnResponse(BaseModel):
    """Return operation response"""
    success: bool
    return_request: Optional[ReturnRequest] = None
    message: str
    error_code: Optional[str] = None
    warnings: List[str] = []


class ReturnListResponse(BaseModel):
    """Return list response"""
    returns: List[ReturnRequest]
    count: int
    limit: int
    offset: int


class ReturnPickupResponse(BaseModel):
    """Reverse pickup scheduling / cancellation result"""
    success: bool
    return_request: Optional[ReturnRequest] = None
    tracking_number: Optional[str] = None
    pickup_id: Optional[str] = None
    pickup_date: Optional[str] = None
    message: str
    error_code: Optional[str] = None
    warnings: List[str] = []


class ReturnTrackingResponse(BaseModel):
    """Reverse pickup tracking result"""
    success: bool
    tracking_number: Optional[str] = None
    status: Optional[ReverseTrackingStatus] = None
    carrier_status: Optional[str] = None
    estimated_pickup_date: Optional[str] = None
    events: List[ReturnTrackingEvent] = []
    is_fallback: bool = False
    message: str
    error_code: Optional[str] = None


class TrackingSyncResponse(BaseModel):
    """Result of applying carrier tracking to a return"""
    success: bool
    updated: bool = False
    return_id: Optional[str] = None
    old_status: Optional[ReturnStatus] = None
    new_status: Optional[ReturnStatus] = None
    tracking_status: Optional[ReverseTrackingStatus] = None
    message: str
    error_code: Optional[str] = None
    warnings: List[str] = []


class PickupSlotsResponse(BaseModel):
    """Pickup windows offered for a pincode and date"""
    success: bool
    pincode: str
    date: str
    slots: List[Dict[str, Any]] = []
    message: str
    error_code: Optional[str] = None
