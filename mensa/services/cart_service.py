"""
购物车结算报价
"""

from typing import Optional

from ..models.cart import Cart, CartQuote
from .discount_engine import DiscountEngine


def quote_cart(cart: Cart, account_type: Optional[str], engine: DiscountEngine) -> CartQuote:
    """按账户类型计算购物车小计的折扣"""
    subtotal = cart.total_price
    return CartQuote(
        items=list(cart.items),
        total_items=cart.total_items,
        subtotal=subtotal,
        discount=engine.calculate_discount_by_account_type(subtotal, account_type),
    )
