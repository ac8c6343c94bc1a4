"""
Domain: the Sale aggregate.

A Sale is the only entry point for changing its line items. Rules enforced on
every mutation:
- sale_number is non-empty.
- A product appears on at most one line (adding an existing product merges
  quantities into that line; the unit price of the new call is ignored).
- Every line quantity is within [1, 20], including merged totals.
- Once cancelled, items can no longer be added, modified or removed.
- Status moves only from Active to Cancelled.

Cancelling keeps the items for audit but values the sale at zero.

Operations return a Result instead of raising; a failed operation leaves the
sale exactly as it was.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError, dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, List, Optional
from uuid import UUID, uuid4

from .errors import Result, invalid_argument, invalid_state, not_found, out_of_range
from .references import BranchInfo, CustomerInfo, ProductInfo
from .sale_item import MAX_QUANTITY, SaleItem, check_quantity
from .time import require_utc_timestamp, utc_now


class SaleStatus(str, Enum):
    ACTIVE = "Active"
    CANCELLED = "Cancelled"


# Set once at construction; never reassigned afterwards.
_IDENTITY_FIELDS = frozenset({"sale_id", "sale_number", "sale_date"})


@dataclass(slots=True)
class Sale:
    """
    Aggregate root for a sale and its items.

    Use `Sale.create` for new sales. The dataclass constructor is for
    rehydrating stored state; it checks the same invariants and raises
    SaleError when they do not hold.
    """

    sale_number: str
    customer: CustomerInfo
    branch: BranchInfo
    sale_id: UUID = field(default_factory=uuid4)
    sale_date: datetime = field(default_factory=utc_now)
    _status: SaleStatus = SaleStatus.ACTIVE
    _items: List[SaleItem] = field(default_factory=list, repr=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _IDENTITY_FIELDS and hasattr(self, name):
            raise FrozenInstanceError(f"cannot assign to field {name!r}")
        object.__setattr__(self, name, value)

    def __post_init__(self) -> None:
        if not isinstance(self.sale_number, str) or not self.sale_number.strip():
            raise invalid_argument("Sale number cannot be empty.")
        require_utc_timestamp("sale_date", self.sale_date)
        self._status = SaleStatus(self._status)
        self._items = list(self._items)

        seen: set[str] = set()
        for item in self._items:
            if item.product_id in seen:
                raise invalid_argument(f"Product '{item.product_id}' appears on more than one line.")
            seen.add(item.product_id)

    @staticmethod
    def create(
        sale_number: str,
        customer: CustomerInfo,
        branch: BranchInfo,
        initial_items: Optional[Iterable[SaleItem]] = None,
    ) -> Result["Sale"]:
        """
        Start a new, active sale dated now (UTC) with a fresh id.

        Initial items go through `add_item` one by one, so two initial items
        for the same product are merged rather than duplicated.
        """

        if not isinstance(sale_number, str) or not sale_number.strip():
            return Result.failure(invalid_argument("Sale number cannot be empty."))

        sale = Sale(sale_number=sale_number, customer=customer, branch=branch)
        for item in initial_items or ():
            added = sale.add_item(item.product, item.quantity, item.unit_price)
            if not added.ok:
                return Result.failure(added.error)  # type: ignore[arg-type]
        return Result.success(sale)

    @staticmethod
    def restore(
        *,
        sale_id: UUID,
        sale_number: str,
        sale_date: datetime,
        customer: CustomerInfo,
        branch: BranchInfo,
        status: SaleStatus,
        items: Iterable[SaleItem],
    ) -> "Sale":
        """Rebuild a stored sale without replaying its history."""

        return Sale(
            sale_number=sale_number,
            customer=customer,
            branch=branch,
            sale_id=sale_id,
            sale_date=sale_date,
            _status=status,
            _items=list(items),
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def status(self) -> SaleStatus:
        return self._status

    @property
    def is_cancelled(self) -> bool:
        return self._status == SaleStatus.CANCELLED

    @property
    def items(self) -> tuple[SaleItem, ...]:
        """Snapshot of the lines in insertion order."""

        return tuple(self._items)

    @property
    def total_amount(self) -> Decimal:
        """Sum of line totals; zero once the sale is cancelled."""

        if self.is_cancelled:
            return Decimal("0")
        return sum((item.line_total for item in self._items), Decimal("0"))

    def find_item(self, product_id: str) -> Optional[SaleItem]:
        index = self._index_of(product_id)
        return None if index is None else self._items[index]

    def _index_of(self, product_id: str) -> Optional[int]:
        for index, item in enumerate(self._items):
            if item.product_id == product_id:
                return index
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_item(self, product: ProductInfo, quantity: int, unit_price: Any) -> Result[SaleItem]:
        """
        Add a product to the sale, merging into its existing line if present.

        Returns the resulting line (new or merged).
        """

        if self.is_cancelled:
            return Result.failure(invalid_state("Cannot modify a cancelled sale."))

        error = check_quantity(quantity)
        if error is not None:
            return Result.failure(error)

        index = self._index_of(product.id)
        if index is None:
            created = SaleItem.create(product, quantity, unit_price)
            if created.ok:
                self._items.append(created.unwrap())
            return created

        existing = self._items[index]
        merged = existing.quantity + quantity
        if merged > MAX_QUANTITY:
            return Result.failure(
                out_of_range(
                    f"Adding {quantity} units would exceed the limit of {MAX_QUANTITY} "
                    f"for product '{product.name}'."
                )
            )

        updated = existing.update_quantity(merged)
        if updated.ok:
            self._items[index] = updated.unwrap()
        return updated

    def modify_item_quantity(self, product_id: str, new_quantity: int) -> Result[SaleItem]:
        if self.is_cancelled:
            return Result.failure(invalid_state("Cannot modify a cancelled sale."))

        error = check_quantity(new_quantity, name="new_quantity")
        if error is not None:
            return Result.failure(error)

        index = self._index_of(product_id)
        if index is None:
            return Result.failure(not_found(f"Product with ID '{product_id}' not found in sale."))

        updated = self._items[index].update_quantity(new_quantity)
        if updated.ok:
            self._items[index] = updated.unwrap()
        return updated

    def remove_item(self, product_id: str) -> Result[Optional[SaleItem]]:
        """
        Remove a product's line.

        An unknown product id is not an error: the sale is left unchanged and
        the result carries None.
        """

        if self.is_cancelled:
            return Result.failure(invalid_state("Cannot modify a cancelled sale."))

        index = self._index_of(product_id)
        if index is None:
            return Result.success(None)
        return Result.success(self._items.pop(index))

    def cancel_sale(self) -> Result[None]:
        """Cancel the sale. Cancelling an already cancelled sale is a no-op."""

        self._status = SaleStatus.CANCELLED
        return Result.success(None)


__all__ = ["Sale", "SaleStatus"]
