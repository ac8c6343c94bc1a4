"""
Sale repository (persistence).

This module provides *only* persistence for the Sale aggregate. It does not
enforce business rules; the aggregate does that before it is handed over.

Contract every implementation satisfies:
- get_by_id returns the sale with all of its items, or None.
- add persists a brand-new sale and raises SaleError(Conflict) if the id exists.
- update replaces the whole stored sale (not a diff). Concurrent updates to the
  same id are last-write-wins; no version token is kept.
- add and update are all-or-nothing: a failed write leaves storage unchanged.
- list returns one page, ordered by (sale_date, sale_id) so that pages are
  stable between calls when nothing was written in between.
"""

from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Protocol
from uuid import UUID

from postgrest.exceptions import APIError  # type: ignore[import-not-found]

from domain.errors import conflict, not_found
from domain.paging import PagedResult, require_valid_page
from domain.references import BranchInfo, CustomerInfo, ProductInfo
from domain.sale import Sale, SaleStatus
from domain.sale_item import SaleItem
from domain.time import require_utc_timestamp
from repositories.client import get_supabase

# Supabase table names.
# Keep these aligned with your database schema (sql/save_sale_atomic.sql).
_SALES_TABLE: str = "sales"
_SALE_ITEMS_TABLE: str = "sale_items"
_SAVE_SALE_RPC: str = "save_sale_atomic"

# Postgres unique_violation
_UNIQUE_VIOLATION: str = "23505"


class SaleRepository(Protocol):
    def get_by_id(self, sale_id: UUID) -> Optional[Sale]: ...

    def add(self, sale: Sale) -> None: ...

    def update(self, sale: Sale) -> None: ...

    def list(self, page_number: int, page_size: int) -> PagedResult[Sale]: ...


class InMemorySaleRepository:
    """
    Process-local storage.

    Sales are deep-copied on the way in and out, so a loaded aggregate is
    never shared with another caller or with the store itself.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sales: Dict[UUID, Sale] = {}

    def get_by_id(self, sale_id: UUID) -> Optional[Sale]:
        with self._lock:
            stored = self._sales.get(sale_id)
            return copy.deepcopy(stored) if stored is not None else None

    def add(self, sale: Sale) -> None:
        with self._lock:
            if sale.sale_id in self._sales:
                raise conflict(f"Sale with ID '{sale.sale_id}' already exists.")
            self._sales[sale.sale_id] = copy.deepcopy(sale)

    def update(self, sale: Sale) -> None:
        with self._lock:
            if sale.sale_id not in self._sales:
                raise not_found(f"Sale with ID '{sale.sale_id}' not found.")
            self._sales[sale.sale_id] = copy.deepcopy(sale)

    def list(self, page_number: int, page_size: int) -> PagedResult[Sale]:
        require_valid_page(page_number, page_size)

        with self._lock:
            ordered = sorted(self._sales.values(), key=lambda s: (s.sale_date, str(s.sale_id)))
            total_count = len(ordered)
            start = (page_number - 1) * page_size
            page = [copy.deepcopy(s) for s in ordered[start:start + page_size]]

        return PagedResult(items=page, page_number=page_number, page_size=page_size, total_count=total_count)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sales)


def _to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _sale_to_row(sale: Sale) -> dict[str, Any]:
    return {
        "sale_id": str(sale.sale_id),
        "sale_number": sale.sale_number,
        "sale_date_utc": _to_iso_utc(sale.sale_date, name="sale_date"),
        "customer_id": sale.customer.id,
        "customer_name": sale.customer.name,
        "customer_description": sale.customer.description,
        "branch_id": sale.branch.id,
        "branch_name": sale.branch.name,
        "branch_description": sale.branch.description,
        "status": sale.status.value,
    }


def _items_to_rows(sale: Sale) -> List[dict[str, Any]]:
    # line_no keeps insertion order across a round trip
    return [
        {
            "sale_id": str(sale.sale_id),
            "line_no": line_no,
            "product_id": item.product.id,
            "product_name": item.product.name,
            "product_description": item.product.description,
            "quantity": item.quantity,
            "unit_price": str(item.unit_price),
        }
        for line_no, item in enumerate(sale.items)
    ]


def _row_to_item(row: Mapping[str, Any]) -> SaleItem:
    return SaleItem(
        product=ProductInfo(
            id=str(row["product_id"]),
            name=str(row["product_name"]),
            description=row.get("product_description"),
        ),
        quantity=int(row["quantity"]),
        unit_price=Decimal(str(row["unit_price"])),
    )


def _row_to_sale(row: Mapping[str, Any]) -> Sale:
    """Convert a Supabase row (with embedded sale_items) into a Sale."""

    item_rows = sorted(row.get(_SALE_ITEMS_TABLE) or [], key=lambda r: int(r["line_no"]))
    return Sale.restore(
        sale_id=UUID(str(row["sale_id"])),
        sale_number=str(row["sale_number"]),
        sale_date=_parse_utc_datetime(row["sale_date_utc"]),
        customer=CustomerInfo(
            id=str(row["customer_id"]),
            name=str(row["customer_name"]),
            description=row.get("customer_description"),
        ),
        branch=BranchInfo(
            id=str(row["branch_id"]),
            name=str(row["branch_name"]),
            description=row.get("branch_description"),
        ),
        status=SaleStatus(str(row["status"])),
        items=[_row_to_item(r) for r in item_rows],
    )


def _raise_on_error(response: Any, action: str) -> None:
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")


class SupabaseSaleRepository:
    """
    Sale storage in two Supabase tables: `sales` (one row per sale) and
    `sale_items` (one row per line, keyed by sale_id and line_no).

    Writes go through the `save_sale_atomic` Postgres function
    (sql/save_sale_atomic.sql), which writes the sale row and replaces its
    item rows in a single transaction. If any part fails, nothing of the
    sale changes.
    """

    def __init__(self, client: Any = None) -> None:
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def get_by_id(self, sale_id: UUID) -> Optional[Sale]:
        response = (
            self.client.table(_SALES_TABLE)
            .select(f"*, {_SALE_ITEMS_TABLE}(*)")
            .eq("sale_id", str(sale_id))
            .limit(1)
            .execute()
        )
        _raise_on_error(response, "get sale")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None
        return _row_to_sale(rows[0])

    def add(self, sale: Sale) -> None:
        self._save(sale, mode="insert")

    def update(self, sale: Sale) -> None:
        self._save(sale, mode="update")

    def list(self, page_number: int, page_size: int) -> PagedResult[Sale]:
        require_valid_page(page_number, page_size)

        start = (page_number - 1) * page_size
        response = (
            self.client.table(_SALES_TABLE)
            .select(f"*, {_SALE_ITEMS_TABLE}(*)", count="exact")
            .order("sale_date_utc")
            .order("sale_id")
            .range(start, start + page_size - 1)
            .execute()
        )
        _raise_on_error(response, "list sales")

        rows = getattr(response, "data", None) or []
        total_count = getattr(response, "count", None) or 0
        return PagedResult(
            items=[_row_to_sale(row) for row in rows],
            page_number=page_number,
            page_size=page_size,
            total_count=int(total_count),
        )

    def _save(self, sale: Sale, *, mode: str) -> None:
        """
        Write the sale row and all of its item rows in one transaction.

        mode "insert" fails with Conflict when the id exists (unique violation
        raised by the function). mode "update" fails with NotFound when it
        does not.
        """

        try:
            response = self.client.rpc(
                _SAVE_SALE_RPC,
                {
                    "p_mode": mode,
                    "p_sale": _sale_to_row(sale),
                    "p_items": _items_to_rows(sale),
                },
            ).execute()
        except APIError as exc:
            if getattr(exc, "code", None) == _UNIQUE_VIOLATION:
                raise conflict(f"Sale with ID '{sale.sale_id}' already exists.") from exc
            raise
        _raise_on_error(response, f"{mode} sale")

        result = getattr(response, "data", None) or {}
        if isinstance(result, list):
            result = result[0] if result else {}

        if result.get("success"):
            return
        if result.get("error_code") == "SALE_NOT_FOUND":
            raise not_found(f"Sale with ID '{sale.sale_id}' not found.")
        raise RuntimeError(f"Failed to {mode} sale: {result.get('error_message') or result}")


__all__ = [
    "SaleRepository",
    "InMemorySaleRepository",
    "SupabaseSaleRepository",
]
