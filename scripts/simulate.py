"""
Order Flow Simulation Script

Registers a restaurant, stocks its menu, fires concurrent orders and
downloads a bill for each one.
Run from project root: python scripts/simulate.py

Author: Khalil_Bannouri
Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:5000/api"
TOTAL_ORDERS = 50

FIRST_NAMES = ["Asha", "Ravi", "Meera", "Arjun", "Priya", "Kiran", "Neha", "Vikram", "Divya", "Rahul"]
LAST_NAMES = ["Sharma", "Iyer", "Patel", "Reddy", "Nair", "Gupta", "Das", "Rao", "Menon", "Singh"]
STREETS = ["MG Road", "Park Street", "Brigade Road", "Linking Road", "Anna Salai", "FC Road"]
MENU_ITEMS = [
    {"name": "Masala Dosa", "price": 90, "category": "Mains"},
    {"name": "Paneer Tikka", "price": 180, "category": "Starters"},
    {"name": "Veg Biryani", "price": 160, "category": "Mains"},
    {"name": "Samosa", "price": 20, "category": "Snacks"},
    {"name": "Masala Chai", "price": 25, "category": "Drinks"},
    {"name": "Gulab Jamun", "price": 45.5, "category": "Desserts"},
]


def generate_random_customer() -> dict[str, str]:
    """Generate random customer info."""
    return {
        "customerName": f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}",
        "customerPhone": f"9{random.randint(100000000, 999999999)}",
        "customerAddress": f"{random.randint(1, 999)} {random.choice(STREETS)}",
    }


def generate_random_items() -> list[dict]:
    """Generate random order lines."""
    lines = []
    for item in random.sample(MENU_ITEMS, random.randint(1, 4)):
        lines.append({"name": item["name"], "price": item["price"], "quantity": random.randint(1, 3)})
    return lines


async def setup_restaurant(client: httpx.AsyncClient) -> str:
    """Register a fresh restaurant with payment details and a menu."""
    suffix = uuid.uuid4().hex[:8]
    response = await client.post(f"{API_BASE_URL}/restaurant/register", json={
        "name": f"Simulation Kitchen {suffix}",
        "email": f"kitchen-{suffix}@example.com",
        "phone": "9800000000",
        "address": "12 MG Road, Bengaluru",
        "password": "simulation",
        "gstin": "29ABCDE1234F1Z5",
    })
    response.raise_for_status()
    restaurant_id = response.json()["restaurant"]["id"]

    await client.put(
        f"{API_BASE_URL}/restaurant/{restaurant_id}/payment-info",
        json={"upiId": f"kitchen{suffix}@upi"},
    )
    for item in MENU_ITEMS:
        await client.post(f"{API_BASE_URL}/restaurant/{restaurant_id}/menu", json=item)
    return restaurant_id


async def send_order(
    client: httpx.AsyncClient,
    restaurant_id: str,
    order_num: int
) -> dict[str, Any]:
    """Create one order and download its bill."""
    payload = {
        "restaurantId": restaurant_id,
        **generate_random_customer(),
        "items": generate_random_items(),
        "specialInstructions": random.choice([None, "Less spicy", "Extra chutney", "No onions"]),
    }
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/orders", json=payload, timeout=30.0)
        if response.status_code != 201:
            return {"order_num": order_num, "success": False, "error": response.text[:100],
                    "time": round(time.time() - start_time, 3)}
        order = response.json()["order"]

        bill = await client.get(f"{API_BASE_URL}/orders/{order['id']}/bill", timeout=30.0)
        elapsed = round(time.time() - start_time, 3)
        if bill.status_code != 200:
            return {"order_num": order_num, "success": False, "error": bill.text[:100], "time": elapsed}

        billed = (await client.get(f"{API_BASE_URL}/orders/{order['id']}")).json()["order"]
        return {
            "order_num": order_num,
            "success": True,
            "order_id": order["orderId"],
            "total": billed["grandTotal"],
            "bill_bytes": len(bill.content),
            "time": elapsed,
        }
    except Exception as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }


async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """Fire ``num_orders`` order+bill flows concurrently against one restaurant."""
    print("=" * 70)
    print("ORDER FLOW SIMULATION")
    print("=" * 70)
    print(f"Total Orders: {num_orders}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    async with httpx.AsyncClient() as client:
        restaurant_id = await setup_restaurant(client)
        print(f"\nRestaurant {restaurant_id} ready, firing orders...\n")
        results = await asyncio.gather(
            *[send_order(client, restaurant_id, i + 1) for i in range(num_orders)]
        )
    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    codes = [r["order_id"] for r in successful]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nSuccessful Orders: {len(successful)}/{num_orders}")
    print(f"Failed Orders: {len(failed)}/{num_orders}")
    print(f"Distinct Order Codes: {len(set(codes))}")
    print(f"Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        revenue = sum(r["total"] for r in successful)
        print("\nPerformance Metrics:")
        print(f"   Average order+bill: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   Billed Revenue (incl. GST): {revenue:.2f}")

    if failed:
        print("\nFailed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("Next: run python scripts/verify.py once the Celery worker is idle")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def test_single_flows() -> bool:
    """Pre-flight checks before the concurrent run."""
    async with httpx.AsyncClient() as client:
        print("\n1. Health Check...")
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"   Failed: {response.text}")
            return False
        data = response.json()
        print(f"   Status: {data.get('status')}")
        print(f"   Database: {data.get('database')}")
        print(f"   Redis: {data.get('redis')}")

        print("\n2. Single order with bill...")
        restaurant_id = await setup_restaurant(client)
        result = await send_order(client, restaurant_id, 1)
        if not result["success"]:
            print(f"   Failed: {result['error']}")
            return False
        print(f"   Order {result['order_id']} billed, grand total {result['total']}")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Flow Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--skip-tests", action="store_true", help="Skip pre-flight checks")
    args = parser.parse_args()

    if not args.skip_tests:
        if not asyncio.run(test_single_flows()):
            print("\nPre-flight checks failed. Fix issues before running the simulation.")
            sys.exit(1)
        print("\nPre-flight checks passed!")

    asyncio.run(run_simulation(args.orders))
