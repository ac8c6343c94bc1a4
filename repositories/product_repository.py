"""
Product lookup (read-only).

Products belong to the catalog, not to sales. A sale only needs a snapshot
of the product's identifying fields when a line is created from a raw
product id.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Protocol

from domain.references import ProductInfo
from repositories.client import get_supabase

logger = logging.getLogger(__name__)

_PRODUCTS_TABLE: str = "products"

DEMO_PRODUCTS: tuple[ProductInfo, ...] = (
    ProductInfo(id="PROD-001", name="Beer 350ml", description="Regular beer can 350ml"),
    ProductInfo(id="PROD-002", name="Beer 600ml", description="Beer bottle 600ml"),
    ProductInfo(id="PROD-003", name="Beer 1L", description="Beer bottle 1 liter"),
)


class ProductLookup(Protocol):
    def get_product_info_by_id(self, product_id: str) -> Optional[ProductInfo]: ...


class InMemoryProductCatalog:
    """Fixed product catalog, seeded with the demo products by default."""

    def __init__(self, products: Iterable[ProductInfo] = DEMO_PRODUCTS) -> None:
        self._products: Dict[str, ProductInfo] = {p.id: p for p in products}

    def get_product_info_by_id(self, product_id: str) -> Optional[ProductInfo]:
        logger.debug("Looking up product with ID: %s", product_id)
        if not product_id:
            logger.warning("Product ID was null or empty")
            return None
        return self._products.get(product_id)


class SupabaseProductLookup:
    """Product lookup against the `products` table."""

    def __init__(self, client: Any = None) -> None:
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def get_product_info_by_id(self, product_id: str) -> Optional[ProductInfo]:
        logger.debug("Looking up product with ID: %s", product_id)
        if not product_id:
            logger.warning("Product ID was null or empty")
            return None

        response = (
            self.client.table(_PRODUCTS_TABLE)
            .select("product_id, name, description")
            .eq("product_id", product_id)
            .limit(1)
            .execute()
        )
        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to fetch product: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None

        row = rows[0]
        return ProductInfo(
            id=str(row["product_id"]),
            name=str(row["name"]),
            description=row.get("description"),
        )


__all__ = [
    "DEMO_PRODUCTS",
    "ProductLookup",
    "InMemoryProductCatalog",
    "SupabaseProductLookup",
]
