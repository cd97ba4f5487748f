"""
Checkout Load Simulation

Fires concurrent cart-and-checkout flows at a running storefront to
exercise cart file locking, the Excel export queue and order tracking.
Run from project root: python scripts/simulate.py

Version: 1.0.0
"""

import asyncio
import sys
import os
import random
import time
import uuid
import argparse
from datetime import datetime
from typing import Any, Optional

import httpx
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50

# Sample data for random orders
FIRST_NAMES = ["Lakshmi", "Ravi", "Sita", "Venkat", "Padma", "Srinivas", "Anjali", "Kiran", "Durga", "Naveen"]
LAST_NAMES = ["Reddy", "Rao", "Naidu", "Sharma", "Varma", "Chowdary", "Goud", "Murthy"]
STREETS = ["Temple Street", "Gandhi Road", "Station Road", "Bazaar Street", "Lake View Colony"]
DELIVERY_AREAS = [
    {"pincode": "500001", "area_name": "Abids", "city": "Hyderabad", "delivery_fee": 30.0,
     "estimated_delivery_minutes": 40},
    {"pincode": "500033", "area_name": "Jubilee Hills", "city": "Hyderabad", "delivery_fee": 40.0,
     "estimated_delivery_minutes": 45},
    {"pincode": "522001", "area_name": "Brodipet", "city": "Guntur", "delivery_fee": 40.0,
     "estimated_delivery_minutes": 50},
    {"pincode": "520001", "area_name": "Governorpet", "city": "Vijayawada", "delivery_fee": 35.0,
     "estimated_delivery_minutes": 50},
]
STATUS_FLOW = ["confirmed", "preparing", "out_for_delivery", "delivered"]


def generate_random_customer() -> dict[str, str]:
    """Generate random customer info in one of the seeded delivery areas."""
    area = random.choice(DELIVERY_AREAS)
    return {
        "customer_name": f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}",
        "phone": f"9{random.randint(100000000, 999999999)}",
        "delivery_address": f"{random.randint(1, 99)}-{random.randint(1, 20)}, {random.choice(STREETS)}",
        "city": area["city"],
        "pincode": area["pincode"],
    }


# =============================================================================
# SETUP
# =============================================================================

async def seed_delivery_areas(client: httpx.AsyncClient, admin_id: str) -> None:
    """Create the simulation delivery areas; existing pincodes are skipped."""
    headers = {"x-user-id": admin_id}
    for area in DELIVERY_AREAS:
        response = await client.post(
            f"{API_BASE_URL}/api/admin/delivery-areas", json=area, headers=headers
        )
        if response.status_code == 201:
            print(f"   ✅ Added {area['pincode']} ({area['area_name']})")
        elif response.status_code == 409:
            print(f"   ➖ {area['pincode']} already present")
        else:
            print(f"   ❌ {area['pincode']}: {response.text[:100]}")


async def fetch_dish_ids(client: httpx.AsyncClient) -> list[str]:
    response = await client.get(f"{API_BASE_URL}/api/menu")
    response.raise_for_status()
    return [dish["id"] for dish in response.json()["dishes"]]


# =============================================================================
# ORDER FLOW
# =============================================================================

async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    dish_ids: list[str],
) -> dict[str, Any]:
    """Fill a fresh cart with random dishes and check it out."""
    cart_id = f"sim-{uuid.uuid4().hex[:12]}"
    start_time = time.time()

    try:
        for dish_id in random.sample(dish_ids, k=random.randint(1, min(4, len(dish_ids)))):
            for _ in range(random.randint(1, 3)):
                await client.post(
                    f"{API_BASE_URL}/api/cart/{cart_id}/items",
                    json={"dish_id": dish_id},
                    timeout=30.0,
                )

        response = await client.post(
            f"{API_BASE_URL}/api/checkout",
            json={"cart_id": cart_id, "payment_method": "cod", **generate_random_customer()},
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            data = response.json()
            return {
                "order_num": order_num,
                "success": True,
                "order_id": data.get("order_id"),
                "total": data.get("total_amount"),
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def advance_order(client: httpx.AsyncClient, order_id: str, admin_id: str) -> bool:
    """Walk one order through every status up to delivered."""
    headers = {"x-user-id": admin_id}
    for status in STATUS_FLOW:
        response = await client.patch(
            f"{API_BASE_URL}/api/admin/orders/{order_id}/status",
            json={"status": status},
            headers=headers,
            timeout=30.0,
        )
        if response.status_code != 200:
            return False
        await asyncio.sleep(random.uniform(0.05, 0.2))
    return True


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    num_orders: int = TOTAL_ORDERS,
    admin_id: Optional[str] = None,
) -> dict[str, Any]:
    """
    Run the load simulation.

    Args:
        num_orders: Number of orders to simulate
        admin_id: Admin user id; when given, delivery areas are seeded and
            every placed order is walked through to delivered
    """
    print("=" * 70)
    print("🔥 CHECKOUT SIMULATION - HIGH CONCURRENCY TEST")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        if admin_id:
            print("\n🗺️  Seeding delivery areas...")
            await seed_delivery_areas(client, admin_id)

        dish_ids = await fetch_dish_ids(client)

        print("\n🚀 Firing checkouts...\n")
        tasks = [send_order(client, i + 1, dish_ids) for i in range(num_orders)]
        results = await asyncio.gather(*tasks)

        successful = [r for r in results if r["success"]]
        advanced = 0
        if admin_id and successful:
            print("🛵 Advancing orders to delivered...\n")
            outcomes = await asyncio.gather(
                *[advance_order(client, r["order_id"], admin_id) for r in successful]
            )
            advanced = sum(outcomes)

    total_time = round(time.time() - start_time, 2)
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    if admin_id:
        print(f"🛵 Delivered: {advanced}/{len(successful)}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum(r.get("total", 0) for r in successful)

        print("\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Total Revenue: ₹{total_revenue:.2f}")

    if failed:
        print("\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("🔍 VERIFICATION STEPS")
    print("=" * 70)
    print("1. Check Celery terminal - all export tasks should complete")
    print("2. Run: python scripts/verify.py")
    print("3. Open data/orders.xlsx to verify data integrity")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def check_health() -> bool:
    """Pre-flight check before the simulation."""
    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(f"{API_BASE_URL}/health")
        except httpx.HTTPError as e:
            print(f"   ❌ Server unreachable: {e}")
            return False

    if response.status_code != 200:
        print(f"   ❌ Failed: {response.text}")
        return False

    data = response.json()
    print(f"   ✅ Status: {data.get('status')}")
    print(f"   Database: {data.get('database')}")
    print(f"   Redis: {data.get('redis')}")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Checkout Load Simulation")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--admin-id", default=None, help="Admin user id for seeding and status walk")
    parser.add_argument("--skip-health", action="store_true", help="Skip the pre-flight health check")
    args = parser.parse_args()

    if not args.skip_health:
        print("\n🧪 Health Check...")
        if not asyncio.run(check_health()):
            print("\n❌ Pre-flight check failed. Fix issues before running simulation.")
            sys.exit(1)

    asyncio.run(run_simulation(num_orders=args.orders, admin_id=args.admin_id))
