"""
Order Service Data Models

Pydantic models for storefront orders, order completion and download links.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from microservices.shipping_service.models import Shipment


class OrderStatus(str, Enum):
    """Order status enumeration"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"


class PaymentMethod(str, Enum):
    """Payment method enumeration"""
    COD = "cod"
    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"
    WALLET = "wallet"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"


class ProductType(str, Enum):
    """Product type enumeration"""
    DIGITAL = "digital"
    POSTER = "poster"
    CLOTHING = "clothing"


PHYSICAL_PRODUCT_TYPES = {ProductType.POSTER, ProductType.CLOTHING}


# Core Order Models

class ShippingAddress(BaseModel):
    """Delivery address for physical items"""
    address: str = Field(..., min_length=1)
    city: str = ""
    state: str = ""
    pincode: str = Field(..., pattern=r"^\d{6}$")
    country: str = "India"


class OrderItem(BaseModel):
    """Line item of an order"""
    item_id: str
    order_id: str
    product_id: str
    product_title: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    product_type: ProductType
    size: Optional[str] = None
    color: Optional[str] = None
    returned: bool = False

    @property
    def is_physical(self) -> bool:
        return self.product_type in PHYSICAL_PRODUCT_TYPES


class DownloadLink(BaseModel):
    """Signed, time-scoped link for one digital item"""
    item_id: str
    product_id: str
    product_title: str
    url: str
    token: str
    expires_at: datetime


class Order(BaseModel):
    """Core order model"""
    order_id: str
    customer_id: Optional[str] = None
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None
    items: List[OrderItem] = []
    total_amount: Decimal
    currency: str = "INR"
    payment_method: PaymentMethod
    payment_id: Optional[str] = None
    status: OrderStatus
    notes: Optional[str] = None
    download_links: List[DownloadLink] = []
    created_at: datetime
    updated_at: datetime

    @property
    def has_physical_items(self) -> bool:
        return any(item.is_physical for item in self.items)


# Request Models

class OrderItemRequest(BaseModel):
    """Line item as submitted at checkout"""
    product_id: str = Field(..., min_length=1)
    product_title: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)
    unit_price: Decimal = Field(..., ge=0)
    product_type: ProductType
    size: Optional[str] = None
    color: Optional[str] = None


class CompleteOrderRequest(BaseModel):
    """Checkout payload handed to order completion"""
    customer_id: Optional[str] = None
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., min_length=3)
    customer_phone: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None
    items: List[OrderItemRequest] = Field(..., min_length=1)
    total_amount: Decimal = Field(..., ge=0)
    currency: str = Field(default="INR")
    payment_method: PaymentMethod
    payment_id: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def physical_items_need_address(self):
        if any(i.product_type in PHYSICAL_PRODUCT_TYPES for i in self.items):
            if self.shipping_address is None:
                raise ValueError("shipping_address is required when the order contains posters or clothing")
            if not self.customer_phone:
                raise ValueError("customer_phone is required when the order contains posters or clothing")
        return self


class OrderFilter(BaseModel):
    """Order list filter"""
    customer_id: Optional[str] = None
    customer_email: Optional[str] = None
    status: Optional[OrderStatus] = None
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


# Response Models

class OrderCompletionResult(BaseModel):
    """Outcome of order completion"""
    success: bool
    order_id: Optional[str] = None
    order_status: Optional[OrderStatus] = None
    download_links: List[DownloadLink] = []
    notified: bool = False
    shipment: Optional[Shipment] = None
    warnings: List[str] = []
    events: List[str] = []
    error: Optional[str] = None
    error_code: Optional[str] = None


class OrderListResponse(BaseModel):
    """Order list response"""
    orders: List[Order]
    count: int
    limit: int
    offset: int


class DownloadVerification(BaseModel):
    """Result of checking a download token"""
    valid: bool
    order_id: Optional[str] = None
    item_id: Optional[str] = None
    product_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    error: Optional[str] = None
