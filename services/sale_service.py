"""
Sale service: commands and queries over the Sale aggregate.

Every mutating handler follows the same shape:
1. Load the sale by id (missing sale: NotFound)
2. Invoke exactly one aggregate operation
3. Persist the whole sale back

Handlers add no business rules of their own. Errors from the aggregate or the
repository come back unchanged inside the returned Result. If persisting
fails after a successful mutation, the in-memory sale is simply dropped.

Domain events (SaleCreated, SaleModified, ItemCancelled, SaleCancelled) are
written to the log only; there is no event bus.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, List, Optional
from uuid import UUID

from domain.errors import Result, SaleError, not_found, out_of_range
from domain.paging import DEFAULT_PAGE_SIZE, PagedResult, clamp_page_size
from domain.references import BranchInfo, CustomerInfo
from domain.sale import Sale
from domain.sale_item import SaleItem
from repositories.product_repository import ProductLookup
from repositories.sale_repository import SaleRepository

logger = logging.getLogger(__name__)


# ============================================================================
# Commands and queries
# ============================================================================

@dataclass(frozen=True, slots=True)
class CreateSaleItem:
    product_id: str
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True, slots=True)
class CreateSaleCommand:
    sale_number: str
    customer: CustomerInfo
    branch: BranchInfo
    items: List[CreateSaleItem] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class AddSaleItemCommand:
    sale_id: UUID
    product_id: str
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True, slots=True)
class ModifySaleItemQuantityCommand:
    sale_id: UUID
    product_id: str
    new_quantity: int


@dataclass(frozen=True, slots=True)
class RemoveSaleItemCommand:
    sale_id: UUID
    product_id: str


@dataclass(frozen=True, slots=True)
class CancelSaleCommand:
    sale_id: UUID


@dataclass(frozen=True, slots=True)
class GetSaleQuery:
    sale_id: UUID


@dataclass(frozen=True, slots=True)
class ListSalesQuery:
    """
    Page request. page_size above the maximum is clamped rather than rejected.
    """

    page_number: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


# ============================================================================
# Helpers
# ============================================================================

def _rejected(action: str, error: SaleError, sale_id: Optional[UUID] = None) -> Result:
    logger.warning(
        "Failed to %s (sale_id=%s): %s: %s", action, sale_id, error.kind.value, error.message
    )
    return Result.failure(error)


def _sale_not_found(sale_id: UUID) -> SaleError:
    return not_found(f"Sale with ID '{sale_id}' not found.")


def _product_not_found(product_id: str) -> SaleError:
    return not_found(f"Product with ID '{product_id}' not found.")


def _load_mutate_persist(
    sale_id: UUID,
    action: str,
    mutation: Callable[[Sale], Result],
    *,
    repository: SaleRepository,
) -> Result[Sale]:
    sale = repository.get_by_id(sale_id)
    if sale is None:
        return _rejected(action, _sale_not_found(sale_id), sale_id)

    outcome = mutation(sale)
    if not outcome.ok:
        return _rejected(action, outcome.error, sale_id)  # type: ignore[arg-type]

    try:
        repository.update(sale)
    except SaleError as exc:
        return _rejected(action, exc, sale_id)

    return Result.success(sale)


# ============================================================================
# Command handlers
# ============================================================================

def create_sale(
    command: CreateSaleCommand,
    *,
    repository: SaleRepository,
    products: ProductLookup,
) -> Result[Sale]:
    """
    Create and persist a new sale.

    Each product id is resolved through the product lookup first; an unknown
    product fails the whole command with NotFound before anything is stored.
    Items sharing a product id are merged by the aggregate.
    """

    lines: List[SaleItem] = []
    for requested in command.items:
        product = products.get_product_info_by_id(requested.product_id)
        if product is None:
            return _rejected("create sale", _product_not_found(requested.product_id))

        line = SaleItem.create(product, requested.quantity, requested.unit_price)
        if not line.ok:
            return _rejected("create sale", line.error)  # type: ignore[arg-type]
        lines.append(line.unwrap())

    created = Sale.create(command.sale_number, command.customer, command.branch, lines)
    if not created.ok:
        return _rejected("create sale", created.error)  # type: ignore[arg-type]

    sale = created.unwrap()
    try:
        repository.add(sale)
    except SaleError as exc:
        return _rejected("create sale", exc, sale.sale_id)

    logger.info(
        "SaleCreated: sale_id=%s sale_number=%s total=%s",
        sale.sale_id,
        sale.sale_number,
        sale.total_amount,
    )
    return Result.success(sale)


def add_sale_item(
    command: AddSaleItemCommand,
    *,
    repository: SaleRepository,
    products: ProductLookup,
) -> Result[Sale]:
    product = products.get_product_info_by_id(command.product_id)
    if product is None:
        return _rejected("add item", _product_not_found(command.product_id), command.sale_id)

    result = _load_mutate_persist(
        command.sale_id,
        "add item",
        lambda sale: sale.add_item(product, command.quantity, command.unit_price),
        repository=repository,
    )
    if result.ok:
        logger.info(
            "SaleModified: sale_id=%s reason=item added product_id=%s",
            command.sale_id,
            command.product_id,
        )
    return result


def modify_sale_item_quantity(
    command: ModifySaleItemQuantityCommand,
    *,
    repository: SaleRepository,
) -> Result[Sale]:
    result = _load_mutate_persist(
        command.sale_id,
        "modify item quantity",
        lambda sale: sale.modify_item_quantity(command.product_id, command.new_quantity),
        repository=repository,
    )
    if result.ok:
        logger.info(
            "SaleModified: sale_id=%s reason=item quantity modified product_id=%s",
            command.sale_id,
            command.product_id,
        )
    return result


def remove_sale_item(
    command: RemoveSaleItemCommand,
    *,
    repository: SaleRepository,
) -> Result[Sale]:
    """Remove a line; an unknown product id succeeds without changing the sale."""

    result = _load_mutate_persist(
        command.sale_id,
        "remove item",
        lambda sale: sale.remove_item(command.product_id),
        repository=repository,
    )
    if result.ok:
        logger.info(
            "ItemCancelled: sale_id=%s product_id=%s", command.sale_id, command.product_id
        )
    return result


def cancel_sale(
    command: CancelSaleCommand,
    *,
    repository: SaleRepository,
) -> Result[Sale]:
    """Cancel a sale. Cancelling twice succeeds both times."""

    result = _load_mutate_persist(
        command.sale_id,
        "cancel sale",
        lambda sale: sale.cancel_sale(),
        repository=repository,
    )
    if result.ok:
        logger.info("SaleCancelled: sale_id=%s", command.sale_id)
    return result


# ============================================================================
# Query handlers
# ============================================================================

def get_sale(query: GetSaleQuery, *, repository: SaleRepository) -> Result[Sale]:
    sale = repository.get_by_id(query.sale_id)
    if sale is None:
        return Result.failure(_sale_not_found(query.sale_id))
    return Result.success(sale)


def list_sales(query: ListSalesQuery, *, repository: SaleRepository) -> Result[PagedResult[Sale]]:
    if query.page_number < 1:
        return Result.failure(out_of_range("page_number must be >= 1."))
    if query.page_size < 1:
        return Result.failure(out_of_range("page_size must be >= 1."))

    return Result.success(repository.list(query.page_number, clamp_page_size(query.page_size)))


__all__ = [
    "CreateSaleItem",
    "CreateSaleCommand",
    "AddSaleItemCommand",
    "ModifySaleItemQuantityCommand",
    "RemoveSaleItemCommand",
    "CancelSaleCommand",
    "GetSaleQuery",
    "ListSalesQuery",
    "create_sale",
    "add_sale_item",
    "modify_sale_item_quantity",
    "remove_sale_item",
    "cancel_sale",
    "get_sale",
    "list_sales",
]
