"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.

Request bounds here (quantity 1 to 20, non-negative price) are early
validation only; the Sale aggregate remains the authority, including the
merged-quantity limit and the discount tiers.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.references import BranchInfo, CustomerInfo, ProductInfo
from domain.paging import PagedResult
from domain.sale import Sale
from domain.sale_item import MAX_QUANTITY, MIN_QUANTITY, SaleItem


# ============================================================================
# Shared Models
# ============================================================================

class ReferenceModel(BaseModel):
    """Denormalized reference to a customer, branch or product."""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

    def to_customer(self) -> CustomerInfo:
        return CustomerInfo(id=self.id, name=self.name, description=self.description)

    def to_branch(self) -> BranchInfo:
        return BranchInfo(id=self.id, name=self.name, description=self.description)


# ============================================================================
# Request Models
# ============================================================================

class CreateSaleItemRequest(BaseModel):
    """Single line in a create-sale request."""
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=MIN_QUANTITY, le=MAX_QUANTITY)
    unit_price: Decimal = Field(..., ge=0)


class CreateSaleRequest(BaseModel):
    """Request to create a new sale."""
    sale_number: str = Field(..., min_length=1)
    customer: ReferenceModel
    branch: ReferenceModel
    items: List[CreateSaleItemRequest] = Field(
        ...,
        min_length=1,
        description="Lines of the sale; lines sharing a product id are merged"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sale_number": "S-0001",
                "customer": {"id": "CUST-1", "name": "Maria Silva"},
                "branch": {"id": "BR-01", "name": "Downtown"},
                "items": [
                    {"product_id": "PROD-001", "quantity": 5, "unit_price": "10.00"},
                    {"product_id": "PROD-002", "quantity": 12, "unit_price": "7.50"}
                ]
            }
        }
    )


class AddSaleItemRequest(BaseModel):
    """Request to add (or merge) a product into an existing sale."""
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=MIN_QUANTITY, le=MAX_QUANTITY)
    unit_price: Decimal = Field(..., ge=0)


class ModifyQuantityRequest(BaseModel):
    """Request to set a line's quantity."""
    new_quantity: int = Field(..., ge=MIN_QUANTITY, le=MAX_QUANTITY)


# ============================================================================
# Response Models
# ============================================================================

class SaleItemResponse(BaseModel):
    product: ReferenceModel
    quantity: int
    unit_price: Decimal
    discount: Decimal
    line_total: Decimal


class SaleResponse(BaseModel):
    """Flat read shape of a sale."""
    id: UUID
    sale_number: str
    sale_date: datetime
    customer: ReferenceModel
    branch: ReferenceModel
    status: str  # "Active" or "Cancelled"
    is_cancelled: bool
    total_amount: Decimal
    items: List[SaleItemResponse]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "sale_number": "S-0001",
                "sale_date": "2025-01-01T12:00:00Z",
                "customer": {"id": "CUST-1", "name": "Maria Silva", "description": None},
                "branch": {"id": "BR-01", "name": "Downtown", "description": None},
                "status": "Active",
                "is_cancelled": False,
                "total_amount": "45.00",
                "items": [
                    {
                        "product": {"id": "PROD-001", "name": "Beer 350ml", "description": None},
                        "quantity": 5,
                        "unit_price": "10.00",
                        "discount": "0.10",
                        "line_total": "45.00"
                    }
                ]
            }
        }
    )


class SaleListResponse(BaseModel):
    items: List[SaleResponse]
    page_number: int
    page_size: int
    total_count: int
    total_pages: int
    has_previous_page: bool
    has_next_page: bool


# ============================================================================
# Mapping
# ============================================================================

def _reference(ref: CustomerInfo | BranchInfo | ProductInfo) -> ReferenceModel:
    return ReferenceModel(id=ref.id, name=ref.name, description=ref.description)


def _item_to_response(item: SaleItem) -> SaleItemResponse:
    return SaleItemResponse(
        product=_reference(item.product),
        quantity=item.quantity,
        unit_price=item.unit_price,
        discount=item.discount,
        line_total=item.line_total,
    )


def sale_to_response(sale: Sale) -> SaleResponse:
    return SaleResponse(
        id=sale.sale_id,
        sale_number=sale.sale_number,
        sale_date=sale.sale_date,
        customer=_reference(sale.customer),
        branch=_reference(sale.branch),
        status=sale.status.value,
        is_cancelled=sale.is_cancelled,
        total_amount=sale.total_amount,
        items=[_item_to_response(item) for item in sale.items],
    )


def page_to_response(page: PagedResult[Sale]) -> SaleListResponse:
    return SaleListResponse(
        items=[sale_to_response(sale) for sale in page.items],
        page_number=page.page_number,
        page_size=page.page_size,
        total_count=page.total_count,
        total_pages=page.total_pages,
        has_previous_page=page.has_previous_page,
        has_next_page=page.has_next_page,
    )
