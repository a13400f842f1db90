"""
折扣相关的请求/响应模式
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.cart import CartItem


class DiscountCalculateRequest(BaseModel):
    """折扣计算请求，group_name 优先于 account_type"""
    original_price: float = Field(..., description="原价（小计）")
    group_name: Optional[str] = Field(None, description="折扣组名称")
    account_type: Optional[str] = Field(None, description="旧版账户类型 Student/Teacher/External")


class CartQuoteRequest(BaseModel):
    """购物车结算报价请求"""
    items: List[CartItem] = Field(default_factory=list, description="购物车条目")
    account_type: Optional[str] = Field(None, description="账户类型或折扣组名称")
