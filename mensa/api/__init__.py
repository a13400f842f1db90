"""
API routes and endpoints.
"""

from fastapi import APIRouter
from .v1 import discount_groups, discounts

api_router = APIRouter()

api_router.include_router(discount_groups.router, prefix="/discount-groups", tags=["折扣组"])
api_router.include_router(discounts.router, prefix="/discounts", tags=["折扣计算"])
