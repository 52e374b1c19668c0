"""
Invoice Ledger (Excel) with Concurrency Control

Appends one row per generated bill to an Excel workbook. Several Celery
workers may export at once, so every read-modify-write happens under a
file lock.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from filelock import FileLock, Timeout

from app.core.config import get_settings

logger = logging.getLogger(__name__)


def ledger_row(order: Any) -> dict[str, Any]:
    """Flatten a billed order into the payload sent to the export task."""
    return {
        "order_id": order.order_id,
        "restaurant_id": order.restaurant_id,
        "restaurant_name": order.restaurant_name,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "order_date": order.order_date.isoformat() if order.order_date else None,
        "items": len(order.items or []),
        "subtotal": order.total_amount,
        "gst_amount": order.gst_amount,
        "grand_total": order.grand_total,
        "payment_method": order.payment_method,
        "order_status": order.status,
    }


class InvoiceLedger:
    """Process-safe Excel ledger of generated bills."""

    COLUMNS = [
        "order_id",
        "restaurant_id",
        "restaurant_name",
        "customer_name",
        "customer_phone",
        "order_date",
        "items",
        "subtotal",
        "gst_amount",
        "grand_total",
        "payment_method",
        "order_status",
        "exported_at",
    ]

    def __init__(self, directory: Path, filename: str, lock_timeout: int = 30):
        self.directory = Path(directory)
        self.path = self.directory / filename
        self.lock_path = self.directory / f"{filename}.lock"
        self.lock_timeout = lock_timeout

    @classmethod
    def from_settings(cls) -> "InvoiceLedger":
        settings = get_settings()
        return cls(
            directory=Path(settings.data_directory),
            filename=settings.ledger_filename,
            lock_timeout=settings.ledger_lock_timeout,
        )

    def _ensure_data_dir(self) -> None:
        if not self.directory.exists():
            self.directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.directory}")

    def _load(self) -> pd.DataFrame:
        if self.path.exists():
            return pd.read_excel(self.path, engine="openpyxl", dtype={"order_id": str})
        return pd.DataFrame(columns=self.COLUMNS)

    def append(self, row: dict[str, Any], exported_at: Optional[str] = None) -> dict[str, Any]:
        """
        Append (or replace) the ledger row for one bill.

        A bill regenerated for the same order replaces its earlier row.

        Returns:
            Result dict with success flag, message and export time
        """
        self._ensure_data_dir()
        order_id = row.get("order_id", "unknown")
        result = {
            "success": False,
            "message": "",
            "order_id": order_id,
            "exported_at": None,
        }

        try:
            with FileLock(str(self.lock_path), timeout=self.lock_timeout):
                df = self._load()
                export_time = exported_at or datetime.now().isoformat()
                new_row = {col: row.get(col) for col in self.COLUMNS}
                new_row["exported_at"] = export_time

                if not df.empty:
                    df = df[df["order_id"] != order_id]
                frames = [f for f in (df, pd.DataFrame([new_row], columns=self.COLUMNS)) if not f.empty]
                df = pd.concat(frames, ignore_index=True)
                df.to_excel(str(self.path), index=False, engine="openpyxl")

                logger.info(f"Bill {order_id} written to ledger")
                result["success"] = True
                result["message"] = f"Bill {order_id} exported"
                result["exported_at"] = export_time

        except Timeout:
            result["message"] = f"Lock timeout ({self.lock_timeout}s)"
            logger.error(f"Ledger lock timeout for bill {order_id}")

        return result

    def rows(self) -> list[dict[str, Any]]:
        """All ledger rows, oldest first."""
        if not self.path.exists():
            return []
        return self._load().to_dict("records")

    def clear(self) -> bool:
        """Delete the ledger workbook and its lock file."""
        for f in (self.path, self.lock_path):
            if f.exists():
                f.unlink()
        logger.info("Invoice ledger cleared")
        return True
