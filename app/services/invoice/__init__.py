"""
Invoice rendering: pure table layout plus the ReportLab PDF renderer.
"""

from app.services.invoice.layout import TableLayout, RowPlacement, layout_rows
from app.services.invoice.renderer import invoice_filename, render_invoice

__all__ = [
    "TableLayout",
    "RowPlacement",
    "layout_rows",
    "invoice_filename",
    "render_invoice",
]
