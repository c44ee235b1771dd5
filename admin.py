#!/usr/bin/env python3
"""Backend maintenance commands for the Price Tracker.

Usage: python admin.py <command>

Commands:
  setup-test-db    - Clear tables and load a small fixed test data set
  cleanup-test-db  - Delete all rows from the app tables
  status           - Show row counts and samples of products, prices, stores

Requires SUPABASE_URL and SUPABASE_SERVICE_KEY (service role, bypasses RLS).
"""

import argparse
import logging
import os
import sys
from typing import Dict, List

from dotenv import load_dotenv

from baas_client import BaasClient, BaasError

logger = logging.getLogger(__name__)

# Foreign keys: prices reference products/stores/anonymous_users
TABLES = ["prices", "products", "stores", "anonymous_users"]
MATCH_ALL = {"id": "neq.never-match"}

TEST_STORES = [
    {
        "store_id": "1",
        "store_name": "Test Supermarket A",
        "store_chain": "Test Chain",
        "store_address": "1-1-1 Test, Shibuya, Tokyo",
        "store_lng": 139.6503,
        "store_lat": 35.6762,
        "store_phone": "03-1234-5678",
        "store_hours": {
            "mon": "9:00-21:00", "tue": "9:00-21:00", "wed": "9:00-21:00",
            "thu": "9:00-21:00", "fri": "9:00-21:00", "sat": "9:00-21:00",
            "sun": "9:00-20:00",
        },
    },
    {
        "store_id": "2",
        "store_name": "Test Supermarket B",
        "store_chain": "Test Chain",
        "store_address": "2-2-2 Test, Shibuya, Tokyo",
        "store_lng": 139.6550,
        "store_lat": 35.6800,
        "store_phone": "03-2345-6789",
        "store_hours": {
            "mon": "8:00-22:00", "tue": "8:00-22:00", "wed": "8:00-22:00",
            "thu": "8:00-22:00", "fri": "8:00-22:00", "sat": "8:00-22:00",
            "sun": "8:00-21:00",
        },
    },
]

TEST_PRODUCTS = [
    {"id": "1", "name": "Tomato", "description": "Loose, per piece", "jan_code": None, "image_url": None},
    {"id": "2", "name": "Milk 1L", "description": "Whole milk", "jan_code": "4902705001234",
     "image_url": "/images/milk.jpg"},
    {"id": "3", "name": "Sandwich Bread", "description": "One loaf", "jan_code": "4903110001234",
     "image_url": "/images/bread.jpg"},
]

TEST_USER = {"id": "test-user-1", "display_name": "Usertest-use"}

TEST_PRICES = [
    {"id": "1", "product_id": "1", "store_id": "1", "price": 298, "reported_by": "test-user-1"},
    {"id": "2", "product_id": "2", "store_id": "1", "price": 188, "reported_by": "test-user-1"},
    {"id": "3", "product_id": "1", "store_id": "2", "price": 318, "reported_by": "test-user-1"},
]


def clear_tables(client: BaasClient, strict: bool = True) -> None:
    """Delete every row, children first"""
    for table in TABLES:
        print(f"🗑️ Clearing {table} table...")
        try:
            client.delete(table, MATCH_ALL)
        except BaasError as e:
            if strict:
                raise
            logger.warning(f"Failed to clear {table}: {e}")


def table_counts(client: BaasClient) -> Dict[str, int]:
    counts = {}
    for table in ("stores", "products", "prices"):
        _, total = client.select(table, columns="id", limit=1, count=True)
        counts[table] = total or 0
    return counts


def setup_test_db(client: BaasClient) -> None:
    print("🚀 Setting up test database...")
    clear_tables(client)

    print("🏪 Inserting test store data...")
    for store in TEST_STORES:
        client.rpc("insert_store_with_location", store)

    print("🥬 Inserting test product data...")
    client.insert("products", TEST_PRODUCTS, returning=False)

    print("👤 Creating test anonymous user...")
    client.insert("anonymous_users", TEST_USER, returning=False)

    print("💰 Inserting test price data...")
    client.insert("prices", TEST_PRICES, returning=False)

    print("✅ Test database setup completed successfully!")
    for table, total in table_counts(client).items():
        print(f"   {table}: {total}")


def cleanup_test_db(client: BaasClient) -> None:
    print("🧹 Cleaning up test database...")
    clear_tables(client, strict=False)
    print("✅ Test database cleanup completed!")


def _print_samples(title: str, rows: List[dict], fields: List[str]) -> None:
    print(f"📋 {title} (first 3):")
    for index, row in enumerate(rows[:3], start=1):
        summary = ", ".join(f"{f}={row.get(f)}" for f in fields)
        print(f"  {index}. {summary}")


def show_status(client: BaasClient) -> None:
    print("🔍 Checking database status...\n")

    checks = [
        ("products", ["id", "name", "jan_code", "created_at"]),
        ("prices", ["product_id", "store_id", "price", "created_at"]),
        ("stores", ["id", "name", "address"]),
    ]
    for table, fields in checks:
        try:
            rows, total = client.select(table, limit=3, count=True)
        except BaasError as e:
            print(f"❌ {table}: {e}")
            continue

        print(f"✅ {table}: {total} rows")
        if rows:
            _print_samples(table, rows, fields)
        print()


COMMANDS = {
    "setup-test-db": setup_test_db,
    "cleanup-test-db": cleanup_test_db,
    "status": show_status,
}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Price Tracker backend maintenance")
    parser.add_argument("command", choices=sorted(COMMANDS))
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    load_dotenv()

    url = os.getenv("SUPABASE_URL")
    service_key = os.getenv("SUPABASE_SERVICE_KEY")
    if not url or not service_key:
        print("❌ SUPABASE_URL and SUPABASE_SERVICE_KEY are required")
        return 1

    client = BaasClient(url, service_key)
    try:
        COMMANDS[args.command](client)
    except BaasError as e:
        print(f"❌ {args.command} failed: {e}")
        return 1
    finally:
        client.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
