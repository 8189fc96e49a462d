"""
Contention Simulation Script

Fires many orders at once from simulated cashier terminals, all competing
for the same ingredients, to check that stock never oversells.
Run from project root (API running, demo data seeded):
    python scripts/simulate.py --orders 100

Version: 1.0.0
"""

import argparse
import asyncio
import os
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx


# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:3000")
TOTAL_ORDERS = 50
TERMINAL_EMPLOYEES = [1, 2, 3, 4]

# Menu item ids created by scripts/seed.py, with their prices
MENU_ITEMS = {
    1: 4.50,
    2: 5.00,
    3: 5.25,
    4: 4.25,
    5: 4.50,
    6: 6.00,
    7: 5.00,
    8: 1.50,
}


def generate_random_items() -> list[dict]:
    """Generate random order lines."""
    num_items = random.randint(1, 3)
    return [
        {"menuItemId": random.choice(list(MENU_ITEMS)), "quantity": random.randint(1, 4)}
        for _ in range(num_items)
    ]


def generate_order_payload() -> dict[str, Any]:
    """Generate a placement request as a cashier terminal would send it."""
    items = generate_random_items()
    total = sum(MENU_ITEMS[i["menuItemId"]] * i["quantity"] for i in items)
    return {
        "employeeId": random.choice(TERMINAL_EMPLOYEES),
        "customerId": random.choice([None, random.randint(1, 500)]),
        "totalCost": round(total, 2),
        "orderWeek": datetime.now().isocalendar()[1],
        "items": items,
    }


async def send_order(client: httpx.AsyncClient, order_num: int) -> dict[str, Any]:
    """Send one order and classify the outcome."""
    payload = generate_order_payload()
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/orders", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)
        data = response.json()

        if response.status_code == 201:
            return {
                "order_num": order_num,
                "outcome": "committed",
                "order_id": data["order"]["id"],
                "attempts": data.get("attempts", 1),
                "total": payload["totalCost"],
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "outcome": data.get("error", f"http_{response.status_code}"),
            "status": response.status_code,
            "detail": data.get("detail"),
            "attempts": data.get("attempts", 0),
            "time": elapsed,
        }
    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "outcome": "transport_error",
            "detail": str(e)[:100],
            "time": elapsed,
        }


async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the contention simulation.

    Args:
        num_orders: Number of orders fired concurrently
    """
    print("=" * 70)
    print("CONTENTION SIMULATION - CONCURRENT CASHIER TERMINALS")
    print("=" * 70)
    print(f"Total Orders: {num_orders}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        before = (await client.get(f"{API_BASE_URL}/api/inventory")).json()["ingredients"]
        tasks = [send_order(client, i + 1) for i in range(num_orders)]
        results = await asyncio.gather(*tasks)
        after = (await client.get(f"{API_BASE_URL}/api/inventory")).json()["ingredients"]

    total_time = round(time.time() - start_time, 2)

    tally: dict[str, int] = {}
    for r in results:
        tally[r["outcome"]] = tally.get(r["outcome"], 0) + 1
    committed = [r for r in results if r["outcome"] == "committed"]
    retried = [r for r in results if r.get("attempts", 0) > 1]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    for outcome, count in sorted(tally.items()):
        print(f"   {outcome:<24} {count}/{num_orders}")
    print(f"   Placements that retried: {len(retried)}")
    print(f"   Total Time: {total_time}s")

    if committed:
        avg_time = round(sum(r["time"] for r in committed) / len(committed), 3)
        print(f"\n   Average commit latency: {avg_time}s")
        print(f"   Revenue: ${sum(r['total'] for r in committed):.2f}")

    before_counts = {i["ingredient_id"]: i["count"] for i in before}
    negative = [i for i in after if i["count"] < 0]
    print("\nINVENTORY")
    for level in after:
        start = before_counts.get(level["ingredient_id"], level["count"])
        print(f"   ingredient {level['ingredient_id']:>3}: {start:>5} -> {level['count']:>5}")
    print("\n" + ("NEGATIVE STOCK DETECTED" if negative else "No ingredient went negative"))
    print("Run: python scripts/verify.py")
    print("=" * 70)

    return {
        "total": num_orders,
        "tally": tally,
        "total_time": total_time,
        "results": results,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Contention Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    args = parser.parse_args()

    asyncio.run(run_simulation(args.orders))
