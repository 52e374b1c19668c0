"""
Order Service (order ledger)

Creates orders with server-computed line totals, lists them per
restaurant, overwrites status, and finalizes the GST/grand total when a
bill is produced.

Order codes look like ``IB482913K7Q``: the configured prefix, the last six
digits of the millisecond clock and three random uppercase alphanumerics.
They are unique by database constraint, not by construction; a collision
is retried with a fresh code.
"""

import logging
import secrets
import string
import time
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.exceptions import DuplicateOrderCode, NotFound, RenderError
from app.models import Order, Restaurant
from app.schemas import OrderCreate, OrderOut
from app.services.pricing import BillTotals, compute_bill, item_total, order_total

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.digits + string.ascii_uppercase

InvoiceRenderer = Callable[[Order, Restaurant, Settings], bytes]


def generate_order_code(prefix: str = "IB", now_ms: Optional[int] = None) -> str:
    """
    Build a human-readable order code.

    Args:
        prefix: Leading letters of the code
        now_ms: Clock value in milliseconds (defaults to the current time)
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    stamp = str(now_ms)[-6:].rjust(6, "0")
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(3))
    return f"{prefix}{stamp}{suffix}"


def price_lines(data: OrderCreate) -> tuple[list[dict], float]:
    """Return the stored line dicts and the exact order total."""
    lines = [
        {
            "name": line.name,
            "price": line.price,
            "quantity": line.quantity,
            "item_total": item_total(line.price, line.quantity),
        }
        for line in data.items
    ]
    return lines, order_total(line["item_total"] for line in lines)


class OrderService:
    """Order ledger backed by an injected database session."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        code_factory: Optional[Callable[[], str]] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.code_factory = code_factory or (
            lambda: generate_order_code(self.settings.order_code_prefix)
        )

    async def _require(self, order_id: str) -> Order:
        order = await self.db.get(Order, order_id)
        if order is None:
            raise NotFound("Order not found")
        return order

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create(self, data: OrderCreate) -> OrderOut:
        """
        Price the lines, snapshot the restaurant and persist in one commit.

        An unknown restaurant does not block the order; it is stored
        without the snapshot fields.

        Raises:
            DuplicateOrderCode: if every attempt collided on the order code
        """
        lines, total = price_lines(data)

        # Read before the loop: a rollback expires loaded instances
        snapshot = dict.fromkeys(
            ("restaurant_name", "restaurant_address", "restaurant_gstin")
        )
        restaurant = await self.db.get(Restaurant, data.restaurant_id)
        if restaurant is not None:
            snapshot = {
                "restaurant_name": restaurant.name,
                "restaurant_address": restaurant.address,
                "restaurant_gstin": restaurant.gstin,
            }
        else:
            logger.warning(
                f"Order for unknown restaurant {data.restaurant_id} accepted without snapshot"
            )

        for attempt in range(1, self.settings.order_code_attempts + 1):
            code = self.code_factory()
            order = Order(
                order_id=code,
                restaurant_id=data.restaurant_id,
                **snapshot,
                customer_name=data.customer_name,
                customer_phone=data.customer_phone,
                customer_address=data.customer_address,
                customer_email=data.customer_email,
                items=lines,
                special_instructions=data.special_instructions,
                payment_method=data.payment_method,
                total_amount=total,
                gst_amount=None,
                grand_total=None,
                status="pending",
                bill_generated=False,
            )
            self.db.add(order)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.warning(f"Order code {code} collided (attempt {attempt})")
                continue

            logger.info(f"Order {order.order_id} created, total {total}")
            return OrderOut.model_validate(order)

        raise DuplicateOrderCode()

    # =========================================================================
    # READ / UPDATE
    # =========================================================================

    async def get(self, order_id: str) -> OrderOut:
        return OrderOut.model_validate(await self._require(order_id))

    async def list_for_restaurant(self, restaurant_id: str) -> list[OrderOut]:
        """Orders of one restaurant, most recent first."""
        result = await self.db.execute(
            select(Order)
            .where(Order.restaurant_id == restaurant_id)
            .order_by(Order.order_date.desc())
        )
        return [OrderOut.model_validate(o) for o in result.scalars().all()]

    async def update_status(self, order_id: str, status: str) -> OrderOut:
        """Overwrite the status; no transition rules apply."""
        order = await self._require(order_id)
        order.status = status
        await self.db.commit()
        logger.info(f"Order {order.order_id} status -> {status}")
        return OrderOut.model_validate(order)

    # =========================================================================
    # BILLING
    # =========================================================================

    def finalize(self, order: Order) -> BillTotals:
        """Stamp GST, grand total and the billed flag onto ``order`` (not committed)."""
        totals = compute_bill(order.total_amount, self.settings.gst_rate)
        order.gst_amount = totals.gst_amount
        order.grand_total = totals.grand_total
        order.bill_generated = True
        return totals

    async def generate_bill(
        self, order_id: str, renderer: InvoiceRenderer
    ) -> tuple[Order, bytes]:
        """
        Finalize totals and render the invoice.

        The totals are committed only once the document has been produced.

        Raises:
            NotFound: unknown order, or its restaurant no longer exists
            RenderError: the renderer failed
        """
        order = await self._require(order_id)
        restaurant = await self.db.get(Restaurant, order.restaurant_id)
        if restaurant is None:
            raise NotFound("Restaurant not found")

        code = order.order_id
        self.finalize(order)
        try:
            document = renderer(order, restaurant, self.settings)
        except Exception as e:
            await self.db.rollback()
            logger.exception(f"Bill generation failed for order {code}")
            raise RenderError() from e

        await self.db.commit()
        logger.info(f"Bill generated for order {code}")
        return order, document
