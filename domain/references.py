"""
Domain: denormalized references to entities owned by other contexts.

Products, customers and branches live elsewhere. A sale keeps a snapshot of
their identifying fields taken at the time of use; later changes to the
source entity do not propagate into existing sales.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class ProductInfo:
    id: str
    name: str
    description: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CustomerInfo:
    id: str
    name: str
    description: Optional[str] = None


@dataclass(frozen=True, slots=True)
class BranchInfo:
    id: str
    name: str
    description: Optional[str] = None
