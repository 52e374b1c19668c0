import re
from datetime import datetime, timezone

import pytest

from app.core.config import get_settings
from app.services.invoice import invoice_filename, render_invoice
from app.services.invoice.renderer import invoice_timestamp
from tests.conftest import make_order, make_restaurant


def page_count(pdf: bytes) -> int:
    return len(re.findall(rb"/Type /Page\b", pdf))


def test_renders_pdf_document():
    pdf = render_invoice(make_order(), make_restaurant(), get_settings())
    assert pdf.startswith(b"%PDF")
    assert pdf.rstrip().endswith(b"%%EOF")
    assert page_count(pdf) == 1


def test_rendering_is_deterministic():
    settings = get_settings()
    first = render_invoice(make_order(), make_restaurant(), settings)
    second = render_invoice(make_order(), make_restaurant(), settings)
    assert first == second


def test_long_orders_paginate():
    pdf = render_invoice(make_order(line_count=60), make_restaurant(), get_settings())
    # 17 + 28 rows, then 15 rows plus the summary on the third page
    assert page_count(pdf) == 3


def test_optional_restaurant_fields_may_be_missing():
    restaurant = make_restaurant(gstin=None, upi_id=None)
    pdf = render_invoice(make_order(), restaurant, get_settings())
    assert pdf.startswith(b"%PDF")


def test_long_names_are_truncated_not_fatal():
    order = make_order(items=[
        {"name": "Extra large " * 40, "price": 99.5, "quantity": 2, "item_total": 199},
    ], total_amount=199.0)
    pdf = render_invoice(order, make_restaurant(), get_settings())
    assert page_count(pdf) == 1


def test_renderer_does_not_touch_stored_bill_values():
    order = make_order()
    render_invoice(order, make_restaurant(), get_settings())
    assert order.gst_amount is None
    assert order.grand_total is None


def test_filename_uses_order_code():
    assert invoice_filename(make_order()) == "InstaBite-Bill-IB123456ABC.pdf"


@pytest.mark.parametrize(
    "stamp",
    [
        datetime(2024, 1, 15, 20, 0, tzinfo=timezone.utc),
        datetime(2024, 1, 15, 20, 0),  # naive values are UTC
    ],
)
def test_invoice_timestamp_applies_offset(stamp):
    local = invoice_timestamp(stamp, 330)
    assert local.strftime("%d/%m/%Y %I:%M %p") == "16/01/2024 01:30 AM"
