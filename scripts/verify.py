"""
Excel Verification Script

Verifies data integrity of the order export workbook.
Run from project root: python scripts/verify.py

Version: 1.0.0
"""

import os
import sys
from datetime import datetime

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd

from storefront.services.excel_manager import ORDERS_FILE, ExcelManager


def verify_excel():
    """Verify Excel file integrity after simulation."""

    print("=" * 60)
    print("🔍 EXCEL VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📄 File: {ORDERS_FILE}")
    print("=" * 60)

    if not ORDERS_FILE.exists():
        print("\n❌ Excel file not found!")
        print("   Run the simulation first: python scripts/simulate.py")
        return False

    df = pd.DataFrame(ExcelManager.get_all_orders())
    if df.empty:
        print("\n❌ Excel file is empty or unreadable!")
        return False
    print("\n✅ File loaded successfully!")

    print("\n📊 STATISTICS:")
    print(f"   Total Orders: {len(df)}")
    print(f"   Columns: {len(df.columns)}")

    missing = [col for col in ExcelManager.ORDER_COLUMNS if col not in df.columns]
    if missing:
        print(f"\n⚠️ Missing Columns: {missing}")
    else:
        print("\n✅ All columns present")

    if "order_id" in df.columns:
        duplicates = df["order_id"].duplicated().sum()
        if duplicates > 0:
            print(f"\n⚠️ {duplicates} duplicate order IDs found!")
        else:
            print("✅ No duplicate order IDs")

    # Totals must equal subtotal plus both fees
    fee_columns = ["subtotal", "delivery_fee", "packaging_fee", "total_amount"]
    if all(col in df.columns for col in fee_columns):
        expected = (df["subtotal"] + df["delivery_fee"] + df["packaging_fee"]).round(2)
        mismatched = (expected != df["total_amount"].round(2)).sum()
        if mismatched:
            print(f"⚠️ {mismatched} orders with totals that do not add up")
        else:
            print("✅ All order totals add up")

    if "total_amount" in df.columns and len(df) > 0:
        print("\n💰 REVENUE:")
        print(f"   Total: ₹{df['total_amount'].sum():.2f}")
        print(f"   Average: ₹{df['total_amount'].mean():.2f}")

    if "pincode" in df.columns and len(df) > 0:
        print("\n🗺️  ORDERS BY PINCODE:")
        print(df["pincode"].astype(str).value_counts().to_string())

    print("\n📋 RECENT ORDERS:")
    print("-" * 60)
    if len(df) > 0:
        cols = ["order_id", "customer_name", "pincode", "total_amount", "order_status"]
        cols = [c for c in cols if c in df.columns]
        print(df[cols].tail(5).to_string(index=False))

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE")
    print("=" * 60)

    return True


if __name__ == "__main__":
    verify_excel()
