"""
Pydantic Schemas for Request/Response Validation

Wire format is camelCase (``customerName``, ``totalAmount``, ``billUrl``);
requests also accept the snake_case field names.

Author: Khalil Bannouri
Version: 1.0.0
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime
import re

EMAIL_PATTERN = re.compile(r"^[\w\.+-]+@[\w\.-]+\.\w+$")


class CamelModel(BaseModel):
    """Base for every schema exchanged with clients."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class RestaurantRegister(CamelModel):
    """Request schema for registering a restaurant account."""
    name: str = Field(..., min_length=1, max_length=200, examples=["Cafe X"])
    email: str = Field(..., max_length=254, examples=["owner@cafex.in"])
    phone: str = Field(..., min_length=1, max_length=30, examples=["9876543210"])
    address: str = Field(..., min_length=1, examples=["12 MG Road, Bengaluru"])
    password: str = Field(..., min_length=1, examples=["s3cret"])
    upi_id: Optional[str] = Field(None, max_length=100, examples=["cafex@upi"])
    payment_qr_code: Optional[str] = Field(None)
    gstin: Optional[str] = Field(None, max_length=20, examples=["29ABCDE1234F1Z5"])

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        # Checked but stored exactly as sent; login matches the same string
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email format")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        # bcrypt only considers the first 72 bytes
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes")
        return v


class RestaurantLogin(CamelModel):
    """Request schema for restaurant login."""
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class PaymentInfoUpdate(CamelModel):
    """Partial update of payment fields; omitted fields are left untouched."""
    upi_id: Optional[str] = Field(None, max_length=100)
    payment_qr_code: Optional[str] = Field(None)
    gstin: Optional[str] = Field(None, max_length=20)


class MenuItemCreate(CamelModel):
    """Menu item appended to a restaurant's menu."""
    name: str = Field(..., min_length=1, max_length=200, examples=["Masala Dosa"])
    price: float = Field(..., ge=0, examples=[80])
    category: Optional[str] = Field(None, max_length=100, examples=["Breakfast"])
    description: Optional[str] = Field(None, max_length=500)
    available: bool = Field(default=True)


class OrderLineCreate(CamelModel):
    """Single line of an order. Any client-sent itemTotal is ignored."""
    name: str = Field(..., min_length=1, max_length=200, examples=["Tea"])
    price: float = Field(..., ge=0, examples=[20])
    quantity: int = Field(..., ge=1, examples=[2])


class OrderCreate(CamelModel):
    """Request schema for creating a new order."""
    restaurant_id: str = Field(..., min_length=1)

    # Customer Info
    customer_name: str = Field(..., min_length=1, max_length=100, examples=["Asha"])
    customer_phone: str = Field(..., min_length=1, max_length=30, examples=["9876543210"])
    customer_address: str = Field(..., min_length=1, examples=["4 Park Street"])
    customer_email: Optional[str] = Field(None, examples=["asha@mail.com"])

    # Order Items
    items: List[OrderLineCreate] = Field(..., min_length=1)
    special_instructions: Optional[str] = Field(None, max_length=500)

    # Payment
    payment_method: Optional[str] = Field(default="UPI", max_length=50)

    @field_validator("customer_email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        if not EMAIL_PATTERN.match(v):
            raise ValueError('Invalid email format')
        return v

    @field_validator("payment_method")
    @classmethod
    def default_payment_method(cls, v: Optional[str]) -> str:
        return v or "UPI"


class OrderStatusUpdate(CamelModel):
    """Any non-empty status string is accepted."""
    status: str = Field(..., min_length=1, max_length=50, examples=["preparing"])


# =============================================================================
# RESOURCE SCHEMAS
# =============================================================================

class MenuItem(CamelModel):
    name: str
    price: float
    category: Optional[str] = None
    description: Optional[str] = None
    available: bool = True


class RestaurantSummary(CamelModel):
    """Public identity returned by register and login."""
    id: str
    name: str
    email: str


class PaymentInfo(CamelModel):
    upi_id: Optional[str] = None
    payment_qr_code: Optional[str] = None
    gstin: Optional[str] = None


class RestaurantPublic(PaymentInfo):
    """Catalog projection used when customers browse restaurants."""
    id: str
    name: str
    email: str
    phone: str
    address: str
    menu: List[MenuItem] = []


class RestaurantDetail(RestaurantPublic):
    """Full account data minus the password hash."""
    created_at: Optional[datetime] = None


class OrderLine(CamelModel):
    name: str
    price: float
    quantity: int
    item_total: float


class OrderOut(CamelModel):
    """Response schema for a single order."""
    id: str
    order_id: str
    restaurant_id: str
    restaurant_name: Optional[str] = None
    restaurant_address: Optional[str] = None
    restaurant_gstin: Optional[str] = None
    customer_name: str
    customer_phone: str
    customer_address: str
    customer_email: Optional[str] = None
    items: List[OrderLine]
    total_amount: float
    gst_amount: Optional[float] = None
    grand_total: Optional[float] = None
    status: str
    special_instructions: Optional[str] = None
    payment_method: str
    order_date: datetime
    bill_generated: bool
    bill_url: Optional[str] = None


# =============================================================================
# RESPONSE ENVELOPES
# =============================================================================

class RestaurantAuthResponse(CamelModel):
    """Response after register or login."""
    success: bool = True
    message: str
    restaurant: RestaurantSummary


class RestaurantDetailResponse(CamelModel):
    success: bool = True
    restaurant: RestaurantDetail


class PaymentInfoResponse(CamelModel):
    success: bool = True
    message: str
    restaurant: PaymentInfo


class MenuResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    menu: List[MenuItem]


class RestaurantListResponse(CamelModel):
    success: bool = True
    restaurants: List[RestaurantPublic]


class OrderResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    order: OrderOut


class OrderListResponse(CamelModel):
    """Response for listing multiple orders."""
    success: bool = True
    orders: List[OrderOut]


class ErrorResponse(CamelModel):
    """Standard error response."""
    success: bool = False
    error: str
    message: Optional[str] = None


class HealthResponse(CamelModel):
    """Health check response."""
    success: bool = True
    message: str
    status: str
    database: str
    redis: str
    environment: str
    timestamp: datetime
