"""
Sales API Endpoints.

Endpoints for creating sales, changing their items, cancelling them and
reading them back.

Error kinds from the service map to status codes:
- NotFound -> 404
- InvalidArgument, OutOfRange, InvalidState -> 400
- Conflict -> 409
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_product_lookup, get_sale_repository
from api.models import (
    AddSaleItemRequest,
    CreateSaleRequest,
    ModifyQuantityRequest,
    SaleListResponse,
    SaleResponse,
    page_to_response,
    sale_to_response,
)
from domain.errors import ErrorKind, Result
from domain.paging import DEFAULT_PAGE_SIZE
from repositories.product_repository import ProductLookup
from repositories.sale_repository import SaleRepository
from services.sale_service import (
    AddSaleItemCommand,
    CancelSaleCommand,
    CreateSaleCommand,
    CreateSaleItem,
    GetSaleQuery,
    ListSalesQuery,
    ModifySaleItemQuantityCommand,
    RemoveSaleItemCommand,
    add_sale_item,
    cancel_sale,
    create_sale,
    get_sale,
    list_sales,
    modify_sale_item_quantity,
    remove_sale_item,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.OUT_OF_RANGE: 400,
    ErrorKind.INVALID_STATE: 400,
    ErrorKind.CONFLICT: 409,
}


def _unwrap(result: Result):
    """Return the result's value or raise the matching HTTPException."""

    if result.ok:
        return result.value

    error = result.error
    raise HTTPException(
        status_code=_STATUS_BY_KIND.get(error.kind, 400),
        detail=f"{error.kind.value}: {error.message}",
    )


def _storage_failure(action: str, exc: Exception) -> HTTPException:
    logger.exception("Storage failure while trying to %s", action)
    return HTTPException(status_code=500, detail=f"Failed to {action}: {str(exc)}")


@router.post(
    "/sales",
    response_model=SaleResponse,
    status_code=201,
    summary="Create Sale",
    description="Create a sale with its items. Items for the same product are merged into one line."
)
def create_sale_endpoint(
    request: CreateSaleRequest,
    repository: SaleRepository = Depends(get_sale_repository),
    products: ProductLookup = Depends(get_product_lookup),
):
    """
    Create a new sale.

    **Discounts** are applied per line from the quantity alone:
    - 1 to 3 units: no discount
    - 4 to 9 units: 10%
    - 10 to 20 units: 20%

    A line can never exceed 20 units, including after merging repeated products.
    """
    command = CreateSaleCommand(
        sale_number=request.sale_number,
        customer=request.customer.to_customer(),
        branch=request.branch.to_branch(),
        items=[
            CreateSaleItem(product_id=item.product_id, quantity=item.quantity, unit_price=item.unit_price)
            for item in request.items
        ],
    )
    try:
        sale = _unwrap(create_sale(command, repository=repository, products=products))
    except HTTPException:
        raise
    except Exception as e:
        raise _storage_failure("create sale", e)

    return sale_to_response(sale)


@router.get(
    "/sales/{sale_id}",
    response_model=SaleResponse,
    summary="Get Sale",
)
def get_sale_endpoint(sale_id: UUID, repository: SaleRepository = Depends(get_sale_repository)):
    try:
        sale = _unwrap(get_sale(GetSaleQuery(sale_id=sale_id), repository=repository))
    except HTTPException:
        raise
    except Exception as e:
        raise _storage_failure("get sale", e)

    return sale_to_response(sale)


@router.get(
    "/sales",
    response_model=SaleListResponse,
    summary="List Sales",
    description="Paged listing of sales. page_size above 100 is clamped to 100."
)
def list_sales_endpoint(
    page_number: int = Query(1, ge=1, description="Page to return, starting at 1"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, description="Sales per page (max 100)"),
    repository: SaleRepository = Depends(get_sale_repository),
):
    query = ListSalesQuery(page_number=page_number, page_size=page_size)
    try:
        page = _unwrap(list_sales(query, repository=repository))
    except HTTPException:
        raise
    except Exception as e:
        raise _storage_failure("list sales", e)

    return page_to_response(page)


@router.post(
    "/sales/{sale_id}/items",
    response_model=SaleResponse,
    summary="Add Sale Item",
)
def add_sale_item_endpoint(
    sale_id: UUID,
    request: AddSaleItemRequest,
    repository: SaleRepository = Depends(get_sale_repository),
    products: ProductLookup = Depends(get_product_lookup),
):
    """Add a product to a sale, merging with its existing line if present."""
    command = AddSaleItemCommand(
        sale_id=sale_id,
        product_id=request.product_id,
        quantity=request.quantity,
        unit_price=request.unit_price,
    )
    try:
        sale = _unwrap(add_sale_item(command, repository=repository, products=products))
    except HTTPException:
        raise
    except Exception as e:
        raise _storage_failure("add item", e)

    return sale_to_response(sale)


@router.patch(
    "/sales/{sale_id}/items/{product_id}",
    response_model=SaleResponse,
    summary="Modify Item Quantity",
)
def modify_item_quantity_endpoint(
    sale_id: UUID,
    product_id: str,
    request: ModifyQuantityRequest,
    repository: SaleRepository = Depends(get_sale_repository),
):
    command = ModifySaleItemQuantityCommand(
        sale_id=sale_id,
        product_id=product_id,
        new_quantity=request.new_quantity,
    )
    try:
        sale = _unwrap(modify_sale_item_quantity(command, repository=repository))
    except HTTPException:
        raise
    except Exception as e:
        raise _storage_failure("modify item quantity", e)

    return sale_to_response(sale)


@router.delete(
    "/sales/{sale_id}/items/{product_id}",
    response_model=SaleResponse,
    summary="Remove Sale Item",
    description="Remove a product's line. Removing a product that is not on the sale changes nothing."
)
def remove_item_endpoint(
    sale_id: UUID,
    product_id: str,
    repository: SaleRepository = Depends(get_sale_repository),
):
    command = RemoveSaleItemCommand(sale_id=sale_id, product_id=product_id)
    try:
        sale = _unwrap(remove_sale_item(command, repository=repository))
    except HTTPException:
        raise
    except Exception as e:
        raise _storage_failure("remove item", e)

    return sale_to_response(sale)


@router.post(
    "/sales/{sale_id}/cancel",
    response_model=SaleResponse,
    summary="Cancel Sale",
    description="Cancel a sale. Items are kept; the total becomes zero. Cancelling twice is allowed."
)
def cancel_sale_endpoint(sale_id: UUID, repository: SaleRepository = Depends(get_sale_repository)):
    try:
        sale = _unwrap(cancel_sale(CancelSaleCommand(sale_id=sale_id), repository=repository))
    except HTTPException:
        raise
    except Exception as e:
        raise _storage_failure("cancel sale", e)

    return sale_to_response(sale)
