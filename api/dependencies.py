"""
FastAPI dependencies wiring the routers to storage.

The backend is chosen by SALES_STORAGE_BACKEND. One repository instance is
shared by the whole process; tests swap them with `app.dependency_overrides`.
"""

from __future__ import annotations

from functools import lru_cache

from api.config import get_settings
from repositories.product_repository import (
    InMemoryProductCatalog,
    ProductLookup,
    SupabaseProductLookup,
)
from repositories.sale_repository import (
    InMemorySaleRepository,
    SaleRepository,
    SupabaseSaleRepository,
)


@lru_cache(maxsize=1)
def get_sale_repository() -> SaleRepository:
    if get_settings().storage_backend == "supabase":
        return SupabaseSaleRepository()
    return InMemorySaleRepository()


@lru_cache(maxsize=1)
def get_product_lookup() -> ProductLookup:
    if get_settings().storage_backend == "supabase":
        return SupabaseProductLookup()
    return InMemoryProductCatalog()
