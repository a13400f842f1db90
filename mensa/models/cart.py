"""
购物车数据模型
同一餐品在同一取餐日期只占一行，重复加入时累加数量
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from .discount import DiscountCalculation


class CartItem(BaseModel):
    """购物车条目"""
    meal_id: str = Field(..., description="餐品ID")
    meal_name: str = Field("", description="餐品名称")
    order_time: str = Field(..., description="取餐日期")
    unit_price: float = Field(..., ge=0, description="单价")
    quantity: int = Field(1, ge=1, description="数量")

    @property
    def key(self) -> Tuple[str, str]:
        return (self.meal_id, self.order_time)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


class Cart(BaseModel):
    """购物车"""
    items: List[CartItem] = Field(default_factory=list, description="购物车条目")

    def find_item(self, meal_id: str, order_time: str) -> Optional[CartItem]:
        for item in self.items:
            if item.key == (meal_id, order_time):
                return item
        return None

    def add_item(self, meal_id: str, order_time: str, unit_price: float,
                 meal_name: str = "", quantity: int = 1) -> CartItem:
        """加入购物车，已存在时累加数量"""
        existing = self.find_item(meal_id, order_time)
        if existing:
            existing.quantity += quantity
            return existing

        item = CartItem(
            meal_id=meal_id,
            meal_name=meal_name,
            order_time=order_time,
            unit_price=unit_price,
            quantity=quantity,
        )
        self.items.append(item)
        return item

    def remove_item(self, meal_id: str, order_time: str):
        self.items = [item for item in self.items if item.key != (meal_id, order_time)]

    def update_quantity(self, meal_id: str, order_time: str, quantity: int):
        """修改数量，小于1时移除该条目"""
        if quantity < 1:
            self.remove_item(meal_id, order_time)
            return

        item = self.find_item(meal_id, order_time)
        if item:
            item.quantity = quantity

    def clear(self):
        self.items = []

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> float:
        return sum(item.line_total for item in self.items)


class CartQuote(BaseModel):
    """结算报价"""
    items: List[CartItem] = Field(..., description="购物车条目")
    total_items: int = Field(..., description="总数量")
    subtotal: float = Field(..., description="小计")
    discount: DiscountCalculation = Field(..., description="折扣计算结果")
