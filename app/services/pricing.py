"""
Order Pricing

Monetary rules for orders and bills:
    - item_total = price × quantity, exact (no rounding)
    - total_amount = sum of item totals
    - gst_amount = total_amount × rate, rounded half-up to a whole unit
    - grand_total = total_amount + gst_amount

Arithmetic runs on Decimal built from the decimal string of each value so
that e.g. 0.1 × 3 stays 0.3; results are handed back as floats, the type
the models store.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Union

Number = Union[int, float, Decimal]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _as_number(value: Decimal) -> float:
    return float(value)


def item_total(price: Number, quantity: Number) -> float:
    """Exact line amount."""
    return _as_number(to_decimal(price) * to_decimal(quantity))


def order_total(item_totals: Iterable[Number]) -> float:
    """Exact sum of line amounts."""
    return _as_number(sum((to_decimal(t) for t in item_totals), Decimal("0")))


@dataclass(frozen=True)
class BillTotals:
    """Amounts printed on (and persisted by) a bill."""
    subtotal: float
    gst_amount: float
    grand_total: float


def compute_bill(total_amount: Number, gst_rate: Number) -> BillTotals:
    """
    Derive GST and grand total from the order subtotal.

    Depends only on its inputs, so regenerating a bill never compounds.

    >>> compute_bill(55, 0.05)
    BillTotals(subtotal=55.0, gst_amount=3.0, grand_total=58.0)
    """
    subtotal = to_decimal(total_amount)
    gst = (subtotal * to_decimal(gst_rate)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return BillTotals(
        subtotal=_as_number(subtotal),
        gst_amount=_as_number(gst),
        grand_total=_as_number(subtotal + gst),
    )


def format_amount(value: Number, symbol: str = "") -> str:
    """
    Render an amount for display: whole values without decimals,
    anything else with two.

    >>> format_amount(40, "Rs.")
    'Rs.40'
    >>> format_amount(12.5, "Rs.")
    'Rs.12.50'
    """
    amount = to_decimal(value)
    if amount == amount.to_integral_value():
        text = f"{int(amount)}"
    else:
        text = f"{amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}"
    return f"{symbol}{text}"
