"""
Domain: sale line items and the quantity discount table.

Rules implemented here:
- A line holds between 1 and 20 units (inclusive) of a single product.
- Unit price is never negative.
- Discount is chosen solely from the quantity on the line:
  - 1 to 3 units:   0%
  - 4 to 9 units:   10%
  - 10 to 20 units: 20%
- line_total = quantity * unit_price * (1 - discount)

`discount_for_quantity` is the only place the tiers are defined.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .errors import Result, SaleError, invalid_argument, out_of_range
from .references import ProductInfo

MIN_QUANTITY: int = 1
MAX_QUANTITY: int = 20

# (lowest quantity of the tier, discount), highest tier first
_DISCOUNT_TIERS: tuple[tuple[int, Decimal], ...] = (
    (10, Decimal("0.20")),
    (4, Decimal("0.10")),
    (1, Decimal("0")),
)


def discount_for_quantity(quantity: int) -> Decimal:
    """
    Resolve the tier discount for a line quantity.

    Quantities outside [1, 20] are rejected before reaching this function;
    passing one here is a programming error.
    """

    if quantity < MIN_QUANTITY or quantity > MAX_QUANTITY:
        raise ValueError(f"quantity must be within [{MIN_QUANTITY}, {MAX_QUANTITY}]")

    for lowest, discount in _DISCOUNT_TIERS:
        if quantity >= lowest:
            return discount
    raise AssertionError("unreachable: tiers cover the full quantity range")


def check_quantity(quantity: Any, *, name: str = "quantity") -> Optional[SaleError]:
    """Return the error for an unacceptable line quantity, or None."""

    if isinstance(quantity, bool) or not isinstance(quantity, int):
        return invalid_argument(f"{name} must be an integer.")
    if quantity < MIN_QUANTITY:
        return out_of_range(f"{name} must be positive.")
    if quantity > MAX_QUANTITY:
        return out_of_range(f"{name} cannot exceed {MAX_QUANTITY} units per product.")
    return None


def normalize_unit_price(value: Any) -> Result[Decimal]:
    """Coerce a unit price into a finite, non-negative Decimal."""

    if isinstance(value, bool):
        return Result.failure(invalid_argument("unit_price must be a number."))

    if isinstance(value, Decimal):
        price = value
    elif isinstance(value, int):
        price = Decimal(value)
    elif isinstance(value, (float, str)):
        try:
            price = Decimal(str(value))
        except InvalidOperation:
            return Result.failure(invalid_argument(f"unit_price is not a number: {value!r}"))
    else:
        return Result.failure(invalid_argument(f"Unsupported unit_price type: {type(value)!r}"))

    if not price.is_finite():
        return Result.failure(invalid_argument("unit_price must be finite."))
    if price < 0:
        return Result.failure(out_of_range("Unit price cannot be negative."))
    return Result.success(price)


@dataclass(frozen=True, slots=True)
class SaleItem:
    """
    One line of a sale.

    Immutable: quantity changes produce a new SaleItem, which the owning Sale
    swaps into its collection. `discount` and `line_total` are derived from
    the current quantity on every read and are never stored.

    Direct construction raises SaleError when a rule is broken; `create`
    reports the same failure as a Result.
    """

    product: ProductInfo
    quantity: int
    unit_price: Decimal

    def __post_init__(self) -> None:
        error = check_quantity(self.quantity)
        if error is not None:
            raise error
        # unwrap() raises the SaleError for a bad price
        object.__setattr__(self, "unit_price", normalize_unit_price(self.unit_price).unwrap())

    @staticmethod
    def create(product: ProductInfo, quantity: int, unit_price: Any) -> Result["SaleItem"]:
        try:
            return Result.success(SaleItem(product=product, quantity=quantity, unit_price=unit_price))
        except SaleError as exc:
            return Result.failure(exc)

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def discount(self) -> Decimal:
        return discount_for_quantity(self.quantity)

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price * (1 - self.discount)

    def update_quantity(self, new_quantity: int) -> Result["SaleItem"]:
        """Return this line with a new quantity (discount follows the new tier)."""

        error = check_quantity(new_quantity, name="new_quantity")
        if error is not None:
            return Result.failure(error)
        return Result.success(SaleItem(product=self.product, quantity=new_quantity, unit_price=self.unit_price))


__all__ = [
    "MIN_QUANTITY",
    "MAX_QUANTITY",
    "SaleItem",
    "check_quantity",
    "discount_for_quantity",
    "normalize_unit_price",
]
