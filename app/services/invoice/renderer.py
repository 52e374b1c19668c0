"""
Invoice PDF Renderer

Draws a TAX INVOICE for an order with ReportLab's canvas. The function is
deterministic: the same order/restaurant/settings always produce the same
bytes (``invariant=1`` pins ReportLab's creation date and document id).

Positions follow ``layout`` (top-down points); ``_Page`` flips them into
ReportLab's bottom-up coordinate system.
"""

import io
from datetime import datetime, timedelta, timezone

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from app.core.config import Settings
from app.models import Order, Restaurant
from app.services.invoice.layout import (
    MARGIN,
    PAGE_WIDTH,
    TABLE_TOP,
    layout_rows,
)
from app.services.pricing import compute_bill, format_amount

ACCENT = colors.HexColor("#ff6b6b")
MUTED = colors.HexColor("#666666")
DARK = colors.HexColor("#333333")
RULE = colors.HexColor("#cccccc")

RIGHT_EDGE = PAGE_WIDTH - MARGIN

# (label, x of the text, x of the cell, cell width)
COLUMNS = [
    ("Item Description", 60, 50, 350),
    ("Price", 410, 400, 60),
    ("Qty", 470, 460, 40),
    ("Amount", 510, 500, 50),
]
DESCRIPTION_WIDTH = 330


class _Page:
    """Thin wrapper that accepts top-down coordinates."""

    def __init__(self, c: canvas.Canvas):
        self.c = c
        self.height = A4[1]

    def _baseline(self, top: float, size: float) -> float:
        return self.height - top - size * 0.8

    def text(self, x, top, value, size=10, font="Helvetica", color=colors.black, align="left"):
        self.c.setFont(font, size)
        self.c.setFillColor(color)
        baseline = self._baseline(top, size)
        if align == "right":
            self.c.drawRightString(x, baseline, value)
        elif align == "center":
            self.c.drawCentredString(x, baseline, value)
        else:
            self.c.drawString(x, baseline, value)

    def rule(self, top, color=RULE, width=1):
        self.c.setStrokeColor(color)
        self.c.setLineWidth(width)
        y = self.height - top
        self.c.line(MARGIN, y, RIGHT_EDGE, y)

    def box(self, x, top, w, h, color):
        self.c.setFillColor(color)
        self.c.rect(x, self.height - top - h, w, h, stroke=0, fill=1)


def _fit(value: str, width: float, font: str = "Helvetica", size: float = 9) -> str:
    """Truncate ``value`` with an ellipsis so it fits ``width`` points."""
    if stringWidth(value, font, size) <= width:
        return value
    while value and stringWidth(value + "...", font, size) > width:
        value = value[:-1]
    return value + "..."


def invoice_timestamp(order_date: datetime, offset_minutes: int) -> datetime:
    """Order timestamp as printed: UTC shifted by the configured offset."""
    if order_date.tzinfo is None:
        order_date = order_date.replace(tzinfo=timezone.utc)
    local = timezone(timedelta(minutes=offset_minutes))
    return order_date.astimezone(local)


def invoice_filename(order: Order) -> str:
    return f"InstaBite-Bill-{order.order_id}.pdf"


def render_invoice(order: Order, restaurant: Restaurant, settings: Settings) -> bytes:
    """
    Render the invoice PDF for ``order`` sold by ``restaurant``.

    Amounts come from the order's lines and ``total_amount``; GST and grand
    total are recomputed from the subtotal so the document never depends on
    previously stored bill values.
    """
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4, invariant=1)
    c.setTitle(f"Tax Invoice {order.order_id}")
    c.setAuthor(settings.brand_name)
    page = _Page(c)
    symbol = settings.currency_symbol
    centre = PAGE_WIDTH / 2

    # =========================================================================
    # HEADER
    # =========================================================================
    page.text(centre, 50, settings.brand_name, size=24, font="Helvetica-Bold",
              color=ACCENT, align="center")
    page.text(centre, 80, settings.brand_tagline, size=12, color=MUTED, align="center")
    page.rule(100, color=ACCENT, width=2)

    # =========================================================================
    # INVOICE METADATA
    # =========================================================================
    stamp = invoice_timestamp(order.order_date, settings.invoice_utc_offset_minutes)
    page.text(MARGIN, 120, "TAX INVOICE", size=18, font="Helvetica-Bold", color=DARK)
    page.text(RIGHT_EDGE, 120, f"Bill No: {order.order_id}", color=MUTED, align="right")
    page.text(RIGHT_EDGE, 135, f"Date: {stamp.strftime('%d/%m/%Y')}", color=MUTED, align="right")
    page.text(RIGHT_EDGE, 150, f"Time: {stamp.strftime('%I:%M:%S %p')}", color=MUTED, align="right")

    # =========================================================================
    # SELLER / BUYER
    # =========================================================================
    page.text(MARGIN, 180, "Sold By:", size=12, font="Helvetica-Bold")
    page.text(MARGIN, 200, _fit(restaurant.name, 240, size=10))
    page.text(MARGIN, 215, _fit(f"Address: {restaurant.address}", 240, size=10))
    page.text(MARGIN, 230, f"Phone: {restaurant.phone}")
    if restaurant.gstin:
        page.text(MARGIN, 245, f"GSTIN: {restaurant.gstin}")

    page.text(300, 180, "Bill To:", size=12, font="Helvetica-Bold")
    page.text(300, 200, _fit(f"Name: {order.customer_name}", 250, size=10))
    page.text(300, 215, f"Phone: {order.customer_phone}")
    address_lines = simpleSplit(f"Address: {order.customer_address}", "Helvetica", 10, 200)
    for i, line in enumerate(address_lines[:2]):
        page.text(300, 230 + i * 12, line)

    page.rule(270)

    # =========================================================================
    # ITEMS TABLE
    # =========================================================================
    for label, text_x, cell_x, cell_w in COLUMNS:
        page.box(cell_x, TABLE_TOP, cell_w, 20, ACCENT)
    for label, text_x, cell_x, cell_w in COLUMNS:
        page.text(text_x, TABLE_TOP + 5, label, font="Helvetica-Bold", color=colors.white)

    layout = layout_rows(len(order.items))
    current_page = 0
    for line, placement in zip(order.items, layout.rows):
        if placement.page != current_page:
            c.showPage()
            current_page = placement.page
        y = placement.y
        page.text(60, y, _fit(str(line["name"]), DESCRIPTION_WIDTH), size=9)
        page.text(410, y, format_amount(line["price"], symbol), size=9)
        page.text(470, y, str(line["quantity"]), size=9)
        page.text(510, y, format_amount(line["item_total"], symbol), size=9)

    if layout.summary_page != current_page:
        c.showPage()
    y = layout.summary_y

    # =========================================================================
    # TOTALS
    # =========================================================================
    totals = compute_bill(order.total_amount, settings.gst_rate)
    page.rule(y + 10)
    page.text(400, y + 30, "Subtotal:")
    page.text(510, y + 30, format_amount(totals.subtotal, symbol))
    page.text(400, y + 45, f"GST ({settings.gst_percent_label}):")
    page.text(510, y + 45, format_amount(totals.gst_amount, symbol))
    page.text(400, y + 65, "Grand Total:", size=12, font="Helvetica-Bold")
    page.text(510, y + 65, format_amount(totals.grand_total, symbol), size=12,
              font="Helvetica-Bold")

    # =========================================================================
    # PAYMENT
    # =========================================================================
    page.text(MARGIN, y + 95, f"Payment Method: {order.payment_method}")
    if restaurant.upi_id:
        page.text(MARGIN, y + 110, f"UPI ID: {restaurant.upi_id}")

    # =========================================================================
    # FOOTER
    # =========================================================================
    for i, footer in enumerate(settings.invoice_footer_lines[:3]):
        page.text(centre, y + 140 + i * 15, footer, size=8, color=MUTED, align="center")

    c.showPage()
    c.save()
    return buf.getvalue()
