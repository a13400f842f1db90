"""
折扣组路由模块
查询走折扣引擎（带缓存和默认表），增删改需要管理员权限
"""

from fastapi import APIRouter, Depends

from ...core.error_handler import create_success_response
from ...core.exceptions import DiscountGroupNotFoundError
from ...core.security import require_admin
from ...models.discount import DiscountGroupCreate, DiscountGroupUpdate
from ...services.discount_engine import DiscountEngine, get_discount_engine
from ...services.discount_group_service import DiscountGroupService, get_discount_group_service

router = APIRouter()


@router.get("")
def list_discount_groups(engine: DiscountEngine = Depends(get_discount_engine)):
    """获取全部折扣组"""
    groups = engine.list_discount_groups()
    return create_success_response([g.model_dump(mode="json") for g in groups], "查询成功")


@router.get("/{name}")
def get_discount_group(name: str, engine: DiscountEngine = Depends(get_discount_engine)):
    """按名称获取折扣组（不区分大小写）"""
    group = engine.find_group_by_name(name)
    if group is None:
        raise DiscountGroupNotFoundError(name)
    return create_success_response(group.model_dump(mode="json"), "查询成功")


@router.post("", status_code=201)
def create_discount_group(
    data: DiscountGroupCreate,
    actor: str = Depends(require_admin),
    service: DiscountGroupService = Depends(get_discount_group_service),
):
    """创建折扣组"""
    group = service.create_group(data, actor=actor)
    return create_success_response(group.model_dump(mode="json"), "折扣组创建成功")


@router.put("/{group_id}")
def update_discount_group(
    group_id: str,
    data: DiscountGroupUpdate,
    actor: str = Depends(require_admin),
    service: DiscountGroupService = Depends(get_discount_group_service),
):
    """更新折扣组"""
    group = service.update_group(group_id, data, actor=actor)
    return create_success_response(group.model_dump(mode="json"), "折扣组更新成功")


@router.delete("/{group_id}")
def delete_discount_group(
    group_id: str,
    actor: str = Depends(require_admin),
    service: DiscountGroupService = Depends(get_discount_group_service),
):
    """删除折扣组"""
    service.delete_group(group_id, actor=actor)
    return create_success_response({"id": group_id}, "折扣组已删除")
