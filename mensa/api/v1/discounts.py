"""
折扣计算路由模块
"""

from fastapi import APIRouter, Depends

from ...core.error_handler import create_success_response
from ...models.cart import Cart
from ...schemas.discount import CartQuoteRequest, DiscountCalculateRequest
from ...services.cart_service import quote_cart
from ...services.discount_engine import DiscountEngine, get_discount_engine

router = APIRouter()


@router.post("/calculate")
def calculate_discount(
    req: DiscountCalculateRequest,
    engine: DiscountEngine = Depends(get_discount_engine),
):
    """计算折扣，指定折扣组名称时按名称计算，否则按账户类型计算"""
    if req.group_name:
        result = engine.calculate_discount_by_group_name(req.original_price, req.group_name)
    else:
        result = engine.calculate_discount_by_account_type(req.original_price, req.account_type)
    return create_success_response(result.model_dump(mode="json"), "计算成功")


@router.post("/quote")
def quote(
    req: CartQuoteRequest,
    engine: DiscountEngine = Depends(get_discount_engine),
):
    """购物车结算报价"""
    cart = Cart()
    for item in req.items:
        cart.add_item(
            item.meal_id,
            item.order_time,
            item.unit_price,
            meal_name=item.meal_name,
            quantity=item.quantity,
        )
    result = quote_cart(cart, req.account_type, engine)
    return create_success_response(result.model_dump(mode="json"), "计算成功")
