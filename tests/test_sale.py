"""
Tests for `domain/sale.py`.

Covers rules:
- Construction: non-empty sale number, Active status, UTC sale date, fresh id.
- sale_id, sale_number and sale_date cannot be reassigned after construction.
- Adding an existing product merges quantities; merged totals above 20 fail
  with OutOfRange and leave the line unchanged.
- Modify fails with NotFound for unknown products; remove is a silent no-op.
- Cancelling is idempotent, keeps items, zeroes the total and blocks mutation.
"""

from __future__ import annotations

import copy
from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from domain.errors import ErrorKind, SaleError
from domain.references import BranchInfo, CustomerInfo, ProductInfo
from domain.sale import Sale, SaleStatus
from domain.sale_item import SaleItem


# ----------------------------------------------------------------------------
# Construction
# ----------------------------------------------------------------------------

def test_create_starts_active_with_utc_date(customer: CustomerInfo, branch: BranchInfo) -> None:
    before = datetime.now(timezone.utc)
    sale = Sale.create("S1", customer, branch).unwrap()
    after = datetime.now(timezone.utc)

    assert sale.status is SaleStatus.ACTIVE
    assert not sale.is_cancelled
    assert sale.items == ()
    assert sale.total_amount == Decimal("0")
    assert sale.sale_date.utcoffset() == timedelta(0)
    assert before <= sale.sale_date <= after
    assert isinstance(sale.sale_id, UUID)


def test_create_assigns_distinct_ids(customer: CustomerInfo, branch: BranchInfo) -> None:
    first = Sale.create("S1", customer, branch).unwrap()
    second = Sale.create("S1", customer, branch).unwrap()

    assert first.sale_id != second.sale_id


@pytest.mark.parametrize("sale_number", ["", "   ", "\t"])
def test_create_rejects_blank_sale_number(customer: CustomerInfo, branch: BranchInfo, sale_number: str) -> None:
    result = Sale.create(sale_number, customer, branch)

    assert result.kind is ErrorKind.INVALID_ARGUMENT


def test_create_merges_initial_items_for_same_product(
    customer: CustomerInfo, branch: BranchInfo, p1: ProductInfo, p2: ProductInfo
) -> None:
    initial = [
        SaleItem.create(p1, 2, Decimal("10.00")).unwrap(),
        SaleItem.create(p2, 1, Decimal("5.00")).unwrap(),
        SaleItem.create(p1, 3, Decimal("99.00")).unwrap(),
    ]

    sale = Sale.create("S1", customer, branch, initial).unwrap()

    assert [item.product_id for item in sale.items] == ["P1", "P2"]
    merged = sale.find_item("P1")
    assert merged is not None
    assert merged.quantity == 5
    assert merged.unit_price == Decimal("10.00")
    assert merged.discount == Decimal("0.10")


def test_create_fails_when_initial_items_merge_past_limit(
    customer: CustomerInfo, branch: BranchInfo, p1: ProductInfo
) -> None:
    initial = [
        SaleItem.create(p1, 15, Decimal("1.00")).unwrap(),
        SaleItem.create(p1, 6, Decimal("1.00")).unwrap(),
    ]

    assert Sale.create("S1", customer, branch, initial).kind is ErrorKind.OUT_OF_RANGE


def test_restore_rejects_duplicate_products(customer: CustomerInfo, branch: BranchInfo, p1: ProductInfo) -> None:
    line = SaleItem.create(p1, 1, Decimal("1.00")).unwrap()

    with pytest.raises(SaleError):
        Sale.restore(
            sale_id=UUID("00000000-0000-0000-0000-000000000001"),
            sale_number="S1",
            sale_date=datetime(2025, 1, 1, tzinfo=timezone.utc),
            customer=customer,
            branch=branch,
            status=SaleStatus.ACTIVE,
            items=[line, line],
        )


def test_restore_requires_utc_sale_date(customer: CustomerInfo, branch: BranchInfo) -> None:
    with pytest.raises(ValueError):
        Sale.restore(
            sale_id=UUID("00000000-0000-0000-0000-000000000001"),
            sale_number="S1",
            sale_date=datetime(2025, 1, 1, tzinfo=timezone(timedelta(hours=-3))),
            customer=customer,
            branch=branch,
            status=SaleStatus.ACTIVE,
            items=[],
        )


@pytest.mark.parametrize(
    "name, value",
    [
        ("sale_id", uuid4()),
        ("sale_number", ""),
        ("sale_date", datetime(2020, 1, 1, tzinfo=timezone.utc)),
    ],
)
def test_identity_fields_cannot_be_reassigned(sale: Sale, name: str, value: object) -> None:
    before = getattr(sale, name)

    with pytest.raises(FrozenInstanceError):
        setattr(sale, name, value)

    assert getattr(sale, name) == before


def test_identity_survives_copy_and_mutations(sale: Sale, p1: ProductInfo) -> None:
    copied = copy.deepcopy(sale)
    copied.add_item(p1, 1, Decimal("1.00"))
    copied.cancel_sale()

    assert copied.sale_id == sale.sale_id
    assert copied.sale_number == sale.sale_number
    assert copied.sale_date == sale.sale_date


# ----------------------------------------------------------------------------
# add_item
# ----------------------------------------------------------------------------

def test_add_item_appends_in_insertion_order(sale: Sale, p1: ProductInfo, p2: ProductInfo, p3: ProductInfo) -> None:
    for product in (p2, p1, p3):
        assert sale.add_item(product, 1, Decimal("1.00")).ok

    assert [item.product_id for item in sale.items] == ["P2", "P1", "P3"]


def test_add_then_merge_scenario(sale: Sale, p1: ProductInfo) -> None:
    """S1: add 5 x 10.00 then 3 more of the same product."""

    first = sale.add_item(p1, 5, Decimal("10.00")).unwrap()
    assert first.discount == Decimal("0.10")
    assert first.line_total == Decimal("45.00")
    assert sale.total_amount == Decimal("45.00")

    merged = sale.add_item(p1, 3, Decimal("10.00")).unwrap()
    assert len(sale.items) == 1
    assert merged.quantity == 8
    assert merged.discount == Decimal("0.10")
    assert merged.line_total == Decimal("72.00")
    assert sale.total_amount == Decimal("72.00")


def test_merge_ignores_unit_price_of_new_call(sale: Sale, p1: ProductInfo) -> None:
    sale.add_item(p1, 2, Decimal("10.00"))
    sale.add_item(p1, 2, Decimal("1.00"))

    item = sale.find_item("P1")
    assert item is not None
    assert item.quantity == 4
    assert item.unit_price == Decimal("10.00")


def test_merge_past_limit_fails_without_partial_update(sale: Sale, p1: ProductInfo) -> None:
    sale.add_item(p1, 15, Decimal("1.00"))

    result = sale.add_item(p1, 6, Decimal("1.00"))

    assert result.kind is ErrorKind.OUT_OF_RANGE
    item = sale.find_item("P1")
    assert item is not None
    assert item.quantity == 15
    assert sale.total_amount == Decimal("12.00")


def test_merge_up_to_exactly_twenty_is_allowed(sale: Sale, p1: ProductInfo) -> None:
    sale.add_item(p1, 15, Decimal("1.00"))

    assert sale.add_item(p1, 5, Decimal("1.00")).unwrap().quantity == 20


@pytest.mark.parametrize("quantity", [0, -3, 21])
def test_add_item_rejects_quantity_out_of_range(sale: Sale, p1: ProductInfo, quantity: int) -> None:
    result = sale.add_item(p1, quantity, Decimal("1.00"))

    assert result.kind is ErrorKind.OUT_OF_RANGE
    assert sale.items == ()


def test_add_item_rejects_negative_price(sale: Sale, p1: ProductInfo) -> None:
    assert sale.add_item(p1, 1, Decimal("-1")).kind is ErrorKind.OUT_OF_RANGE
    assert sale.items == ()


def test_items_snapshot_does_not_expose_internal_list(sale: Sale, p1: ProductInfo) -> None:
    sale.add_item(p1, 1, Decimal("1.00"))
    snapshot = sale.items

    sale.add_item(ProductInfo(id="P9", name="Other"), 1, Decimal("1.00"))

    assert isinstance(snapshot, tuple)
    assert len(snapshot) == 1
    assert len(sale.items) == 2


# ----------------------------------------------------------------------------
# modify_item_quantity
# ----------------------------------------------------------------------------

def test_modify_item_quantity_updates_discount(sale: Sale, p1: ProductInfo) -> None:
    sale.add_item(p1, 2, Decimal("10.00"))

    item = sale.modify_item_quantity("P1", 12).unwrap()

    assert item.quantity == 12
    assert item.discount == Decimal("0.20")
    assert sale.total_amount == Decimal("96.00")


def test_modify_item_quantity_out_of_range_keeps_quantity(sale: Sale, p1: ProductInfo) -> None:
    sale.add_item(p1, 5, Decimal("10.00"))
    sale.add_item(p1, 3, Decimal("10.00"))

    result = sale.modify_item_quantity("P1", 21)

    assert result.kind is ErrorKind.OUT_OF_RANGE
    item = sale.find_item("P1")
    assert item is not None
    assert item.quantity == 8


def test_modify_item_quantity_unknown_product_is_not_found(sale: Sale) -> None:
    assert sale.modify_item_quantity("missing", 2).kind is ErrorKind.NOT_FOUND


def test_modify_checks_range_before_lookup(sale: Sale) -> None:
    assert sale.modify_item_quantity("missing", 0).kind is ErrorKind.OUT_OF_RANGE


# ----------------------------------------------------------------------------
# remove_item
# ----------------------------------------------------------------------------

def test_remove_item_drops_line(sale: Sale, p1: ProductInfo, p2: ProductInfo) -> None:
    sale.add_item(p1, 1, Decimal("1.00"))
    sale.add_item(p2, 1, Decimal("2.00"))

    removed = sale.remove_item("P1").unwrap()

    assert removed is not None
    assert removed.product_id == "P1"
    assert [item.product_id for item in sale.items] == ["P2"]
    assert sale.total_amount == Decimal("2.00")


def test_remove_unknown_item_is_silent_no_op(sale: Sale, p1: ProductInfo) -> None:
    sale.add_item(p1, 4, Decimal("10.00"))
    items_before = sale.items
    total_before = sale.total_amount

    result = sale.remove_item("missing")

    assert result.ok
    assert result.value is None
    assert sale.items == items_before
    assert sale.total_amount == total_before


# ----------------------------------------------------------------------------
# cancel_sale
# ----------------------------------------------------------------------------

def test_cancel_keeps_items_and_zeroes_total(sale: Sale, p1: ProductInfo) -> None:
    sale.add_item(p1, 5, Decimal("10.00"))

    assert sale.cancel_sale().ok

    assert sale.status is SaleStatus.CANCELLED
    assert len(sale.items) == 1
    assert sale.items[0].line_total == Decimal("45.00")
    assert sale.total_amount == Decimal("0")


def test_cancel_is_idempotent(sale: Sale) -> None:
    assert sale.cancel_sale().ok
    assert sale.cancel_sale().ok
    assert sale.status is SaleStatus.CANCELLED


def test_cancelled_sale_rejects_add_scenario(sale: Sale, p2: ProductInfo, p3: ProductInfo) -> None:
    sale.add_item(p2, 20, Decimal("1.00"))
    sale.cancel_sale()

    result = sale.add_item(p3, 1, Decimal("1.00"))

    assert result.kind is ErrorKind.INVALID_STATE


def test_every_mutation_on_cancelled_sale_fails_and_changes_nothing(sale: Sale, p1: ProductInfo) -> None:
    sale.add_item(p1, 5, Decimal("10.00"))
    sale.cancel_sale()
    items_before = sale.items

    assert sale.add_item(p1, 1, Decimal("10.00")).kind is ErrorKind.INVALID_STATE
    assert sale.modify_item_quantity("P1", 2).kind is ErrorKind.INVALID_STATE
    assert sale.remove_item("P1").kind is ErrorKind.INVALID_STATE
    assert sale.remove_item("missing").kind is ErrorKind.INVALID_STATE

    assert sale.items == items_before
    assert sale.status is SaleStatus.CANCELLED


def test_unwrap_raises_carried_error(sale: Sale) -> None:
    sale.cancel_sale()

    with pytest.raises(SaleError) as info:
        sale.add_item(ProductInfo(id="P1", name="x"), 1, Decimal("1")).unwrap()
    assert info.value.kind is ErrorKind.INVALID_STATE
