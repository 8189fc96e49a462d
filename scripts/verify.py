"""
Order/Inventory Verification Script

Pulls orders and stock from a running API and checks the invariants that
concurrent placement must preserve.
Run from project root: python scripts/verify.py

Version: 1.0.0
"""

import os
import sys
from datetime import datetime

import httpx
import pandas as pd

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:3000")
PAGE_SIZE = 500


def fetch_orders(client: httpx.Client) -> list[dict]:
    orders = []
    skip = 0
    while True:
        page = client.get(f"{API_BASE_URL}/api/orders", params={"skip": skip, "limit": PAGE_SIZE}).json()
        orders.extend(page["orders"])
        skip += PAGE_SIZE
        if skip >= page["total"] or not page["orders"]:
            return orders


def verify_orders() -> bool:
    """Verify order and inventory integrity after a simulation."""

    print("=" * 60)
    print("ORDER / INVENTORY VERIFICATION REPORT")
    print("=" * 60)
    print(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"API: {API_BASE_URL}")
    print("=" * 60)

    try:
        with httpx.Client(timeout=30.0) as client:
            orders = fetch_orders(client)
            inventory = client.get(f"{API_BASE_URL}/api/inventory").json()["ingredients"]
    except Exception as e:
        print(f"\nCould not reach the API: {e}")
        return False

    orders_df = pd.DataFrame(orders, columns=["id", "time_of_order", "employee_id", "total_cost", "items"])
    items_df = pd.DataFrame(
        [item for order in orders for item in order["items"]],
        columns=["id", "order_id", "menu_item_id", "quantity"],
    )
    stock_df = pd.DataFrame(inventory, columns=["ingredient_id", "count"])

    ok = True

    print("\nSTATISTICS:")
    print(f"   Orders: {len(orders_df)}")
    print(f"   Line items: {len(items_df)}")
    print(f"   Ingredients: {len(stock_df)}")

    duplicates = orders_df["id"].duplicated().sum()
    if duplicates > 0:
        print(f"\n{duplicates} duplicate order IDs found!")
        ok = False
    else:
        print("\nNo duplicate order IDs")

    item_duplicates = items_df["id"].duplicated().sum()
    if item_duplicates > 0:
        print(f"{item_duplicates} duplicate line item IDs found!")
        ok = False
    else:
        print("No duplicate line item IDs")

    empty = orders_df[orders_df["items"].map(len) == 0]
    if len(empty) > 0:
        print(f"{len(empty)} order(s) without line items: {empty['id'].tolist()[:10]}")
        ok = False
    else:
        print("Every order has at least one line item")

    negative = stock_df[stock_df["count"] < 0]
    if len(negative) > 0:
        print(f"Negative stock: {negative.to_dict('records')}")
        ok = False
    else:
        print("No negative ingredient counts")

    if len(orders_df) > 0:
        print("\nREVENUE:")
        print(f"   Total: ${orders_df['total_cost'].sum():.2f}")
        print(f"   Average: ${orders_df['total_cost'].mean():.2f}")

        print("\nRECENT ORDERS:")
        print("-" * 60)
        print(orders_df[["id", "time_of_order", "employee_id", "total_cost"]].head(5).to_string(index=False))

    print("\n" + "=" * 60)
    print("VERIFICATION PASSED" if ok else "VERIFICATION FAILED")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    sys.exit(0 if verify_orders() else 1)
