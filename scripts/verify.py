"""
Invoice Ledger Verification Script

Checks the Excel invoice ledger written by the Celery export task.
Run from project root: python scripts/verify.py

Author: Khalil_Bannouri
Version: 1.0.0
"""

import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd

from app.core.config import get_settings
from app.services.ledger import InvoiceLedger


def verify_ledger() -> bool:
    """Verify ledger integrity after a simulation run."""
    ledger = InvoiceLedger.from_settings()
    gst_rate = get_settings().gst_rate

    print("=" * 60)
    print("INVOICE LEDGER VERIFICATION REPORT")
    print("=" * 60)
    print(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"File: {ledger.path}")
    print("=" * 60)

    if not ledger.path.exists():
        print("\nLedger file not found!")
        print("   Run the simulation first: python scripts/simulate.py")
        return False

    try:
        df = pd.read_excel(ledger.path, engine="openpyxl", dtype={"order_id": str})
    except Exception as e:
        print(f"\nCould not read ledger: {e}")
        return False

    ok = True
    print(f"\nBills: {len(df)}")

    missing = [col for col in InvoiceLedger.COLUMNS if col not in df.columns]
    if missing:
        print(f"Missing Columns: {missing}")
        return False
    print("All ledger columns present")

    duplicates = df["order_id"].duplicated().sum()
    if duplicates:
        ok = False
        print(f"{duplicates} duplicate order codes found!")
    else:
        print("No duplicate order codes")

    expected_gst = (df["subtotal"] * gst_rate + 0.5).apply(int)
    bad_gst = df[df["gst_amount"] != expected_gst]
    bad_total = df[df["grand_total"] != df["subtotal"] + df["gst_amount"]]
    if len(bad_gst) or len(bad_total):
        ok = False
        print(f"{len(bad_gst)} rows with unexpected GST, {len(bad_total)} with a wrong grand total")
    else:
        print("GST and grand totals consistent")

    print("\nREVENUE:")
    print(f"   Subtotal: {df['subtotal'].sum():.2f}")
    print(f"   GST: {df['gst_amount'].sum():.2f}")
    print(f"   Grand Total: {df['grand_total'].sum():.2f}")

    print("\nRECENT BILLS:")
    print("-" * 60)
    if len(df) > 0:
        cols = ["order_id", "customer_name", "grand_total", "order_status"]
        print(df[cols].tail(5).to_string(index=False))

    print("\n" + "=" * 60)
    print("VERIFICATION COMPLETE" if ok else "VERIFICATION FOUND PROBLEMS")
    print("=" * 60)
    return ok


if __name__ == "__main__":
    sys.exit(0 if verify_ledger() else 1)
