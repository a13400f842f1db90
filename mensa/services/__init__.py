"""
Business logic services.
Contains service layer implementations for discount pricing and administration.
"""

from .cart_service import quote_cart
from .discount_engine import DiscountEngine, DiscountGroupCache, discount_engine
from .discount_group_repository import DiscountGroupRepository
from .discount_group_service import DiscountGroupService

__all__ = [
    "DiscountEngine",
    "DiscountGroupCache",
    "DiscountGroupRepository",
    "DiscountGroupService",
    "discount_engine",
    "quote_cart",
]
