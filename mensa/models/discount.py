"""
折扣相关数据模型
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .base import BaseEntity, TimestampMixin


UNKNOWN_GROUP_NAME = "Unbekannt"


class DiscountSource(str, Enum):
    """折扣计算结果的数据来源"""
    LIVE = "live"            # 来自数据库的实时数据
    FALLBACK = "fallback"    # 数据库不可用时的内置默认表
    NOT_FOUND = "not_found"  # 未匹配到折扣组


class DiscountGroupBase(BaseModel):
    """折扣组基础字段"""
    name: str = Field(..., min_length=1, max_length=50, description="折扣组名称")
    description: str = Field(..., min_length=1, max_length=500, description="折扣组描述")
    discount_percentage: float = Field(..., ge=0, le=100, description="折扣百分比（15 表示 15%）")

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        """去除首尾空白"""
        if isinstance(v, str):
            return v.strip()
        return v


class DiscountGroupCreate(DiscountGroupBase):
    """折扣组创建模型"""
    pass


class DiscountGroupUpdate(BaseModel):
    """折扣组更新模型"""
    name: Optional[str] = Field(None, min_length=1, max_length=50, description="折扣组名称")
    description: Optional[str] = Field(None, min_length=1, max_length=500, description="折扣组描述")
    discount_percentage: Optional[float] = Field(None, ge=0, le=100, description="折扣百分比")

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        """去除首尾空白"""
        if isinstance(v, str):
            return v.strip()
        return v


class DiscountGroup(BaseEntity, TimestampMixin):
    """
    折扣组完整模型

    读取时不重新校验百分比范围，越界值由折扣引擎在计算时截断。
    实例被缓存和回退表共享，因此不可修改
    """
    model_config = {**BaseEntity.model_config, "frozen": True}

    id: str = Field(..., description="折扣组ID")
    name: str = Field(..., description="折扣组名称")
    description: str = Field("", description="折扣组描述")
    discount_percentage: float = Field(..., description="折扣百分比")


class DiscountCalculation(BaseModel):
    """折扣计算结果（每次请求重新计算，不落库）"""
    original_price: float = Field(..., description="原价")
    discount_percentage: float = Field(0, description="折扣百分比")
    discount_amount: float = Field(0, description="折扣金额")
    final_price: float = Field(..., description="折后价")
    group_name: str = Field(..., description="折扣组名称")
    source: DiscountSource = Field(..., description="数据来源")
