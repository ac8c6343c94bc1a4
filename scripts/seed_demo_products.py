"""
Seed the demo product catalog into Supabase.

Inserts the products the in-memory catalog ships with, so that the supabase
backend can resolve the same product ids:
- PROD-001: Beer 350ml
- PROD-002: Beer 600ml
- PROD-003: Beer 1L

Existing products are left untouched.
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import from repositories
sys.path.insert(0, str(Path(__file__).parent.parent))

from repositories.client import get_supabase
from repositories.product_repository import DEMO_PRODUCTS


def seed_demo_products():
    """Insert any demo product that is not in the products table yet."""

    supabase = get_supabase()

    for product in DEMO_PRODUCTS:
        existing = supabase.table("products").select("product_id").eq("product_id", product.id).execute()

        if existing.data:
            print(f"Product already exists: {product.id}")
            continue

        result = supabase.table("products").insert({
            "product_id": product.id,
            "name": product.name,
            "description": product.description,
        }).execute()

        if result.data:
            print(f"[SUCCESS] Created product {product.id} ({product.name})")
        else:
            print(f"[ERROR] Failed to create product {product.id}")
            print(f"  Error: {result}")


if __name__ == "__main__":
    seed_demo_products()
