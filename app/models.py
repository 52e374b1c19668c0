"""
SQLAlchemy Database Models

Two collections back the whole system:
- restaurants: accounts with an embedded, ordered menu
- orders: customer orders with embedded lines and restaurant snapshot

Author: Khalil Bannouri
Version: 1.0.0
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Float, DateTime, Text, Boolean, JSON
from app.database import Base


def new_id() -> str:
    """Store-assigned unique identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Restaurant(Base):
    """
    Restaurant account.

    ``menu`` holds the ordered list of menu items as dicts
    (name, price, category, description, available). Replace the list
    rather than mutating it in place so the change is flushed.
    """
    __tablename__ = "restaurants"

    id = Column(String(32), primary_key=True, default=new_id)

    # =========================================================================
    # IDENTITY
    # =========================================================================
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(30), nullable=False)
    address = Column(Text, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # =========================================================================
    # PAYMENT INFO
    # =========================================================================
    upi_id = Column(String(100), nullable=True)
    payment_qr_code = Column(Text, nullable=True)
    gstin = Column(String(20), nullable=True)

    # =========================================================================
    # CATALOG
    # =========================================================================
    menu = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self):
        return f"<Restaurant {self.id} - {self.name}>"


class Order(Base):
    """
    Customer order.

    Restaurant name/address/GSTIN are copied at creation time so the order
    stays historically accurate. ``gst_amount`` and ``grand_total`` stay
    NULL until the first bill is generated.
    """
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=new_id)
    order_id = Column(String(20), nullable=False, unique=True, index=True)

    # =========================================================================
    # RESTAURANT SNAPSHOT
    # =========================================================================
    restaurant_id = Column(String(32), nullable=False, index=True)
    restaurant_name = Column(String(200), nullable=True)
    restaurant_address = Column(Text, nullable=True)
    restaurant_gstin = Column(String(20), nullable=True)

    # =========================================================================
    # CUSTOMER INFORMATION
    # =========================================================================
    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(30), nullable=False)
    customer_address = Column(Text, nullable=False)
    customer_email = Column(String(255), nullable=True)

    # =========================================================================
    # ORDER DETAILS
    # =========================================================================
    items = Column(JSON, nullable=False, default=list)
    special_instructions = Column(Text, nullable=True)
    payment_method = Column(String(50), nullable=False, default="UPI")
    status = Column(String(50), nullable=False, default="pending", index=True)

    # =========================================================================
    # PRICING
    # =========================================================================
    total_amount = Column(Float, nullable=False)
    gst_amount = Column(Float, nullable=True)
    grand_total = Column(Float, nullable=True)
    bill_generated = Column(Boolean, nullable=False, default=False)

    order_date = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return f"<Order {self.order_id} - {self.customer_name} - {self.status}>"
