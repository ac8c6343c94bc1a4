"""
Pytest configuration and shared fixtures.

This file adds the project root to the Python path so that tests can import
domain, repositories, services and api without installing the project.
"""

import sys
from pathlib import Path

import pytest

# Add the project root directory to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.references import BranchInfo, CustomerInfo, ProductInfo  # noqa: E402
from domain.sale import Sale  # noqa: E402
from repositories.product_repository import InMemoryProductCatalog  # noqa: E402
from repositories.sale_repository import InMemorySaleRepository  # noqa: E402


@pytest.fixture
def customer() -> CustomerInfo:
    return CustomerInfo(id="CUST-1", name="Maria Silva")


@pytest.fixture
def branch() -> BranchInfo:
    return BranchInfo(id="BR-01", name="Downtown")


@pytest.fixture
def p1() -> ProductInfo:
    return ProductInfo(id="P1", name="Beer 350ml", description="Regular beer can 350ml")


@pytest.fixture
def p2() -> ProductInfo:
    return ProductInfo(id="P2", name="Beer 600ml")


@pytest.fixture
def p3() -> ProductInfo:
    return ProductInfo(id="P3", name="Beer 1L")


@pytest.fixture
def sale(customer: CustomerInfo, branch: BranchInfo) -> Sale:
    return Sale.create("S1", customer, branch, []).unwrap()


@pytest.fixture
def repository() -> InMemorySaleRepository:
    return InMemorySaleRepository()


@pytest.fixture
def products() -> InMemoryProductCatalog:
    return InMemoryProductCatalog()
