"""
折扣引擎
根据折扣组名称（或旧版账户类型）解析折扣百分比并计算折后价

主要功能：
- 折扣组列表缓存（5分钟有效期，管理端修改后主动失效）
- 数据库不可用时使用内置默认折扣表
- 不区分大小写的折扣组名称匹配
- 旧版账户类型（Student/Teacher/External）到折扣组名称的映射

业务规则：
- 折扣百分比使用整数刻度，15 表示 15%
- 计算结果不做舍入，由调用方按货币精度展示
- 任何查询失败都降级为默认表或零折扣，不向调用方抛出异常
"""

import logging
import math
import threading
import time
from typing import Callable, List, NamedTuple, Optional, Protocol, Sequence, Tuple

from ..config.settings import settings
from ..core.database import db_manager
from ..models.discount import (
    DiscountCalculation,
    DiscountGroup,
    DiscountSource,
    UNKNOWN_GROUP_NAME,
)
from .discount_group_repository import DiscountGroupRepository

logger = logging.getLogger(__name__)


# 数据库不可用时使用的默认折扣表
FALLBACK_DISCOUNT_GROUPS: Tuple[DiscountGroup, ...] = (
    DiscountGroup(
        id="fallback-student",
        name="Schüler",
        description="Rabatt für Schülerinnen und Schüler",
        discount_percentage=15.0,
    ),
    DiscountGroup(
        id="fallback-teacher",
        name="Lehrer",
        description="Rabatt für Lehrkräfte",
        discount_percentage=10.0,
    ),
    DiscountGroup(
        id="fallback-external",
        name="Externe",
        description="Keine Rabatte für externe Besucher",
        discount_percentage=0.0,
    ),
)

# 旧版账户类型 -> 折扣组名称，未列出的类型按原样作为折扣组名称
ACCOUNT_TYPE_GROUP_NAMES = {
    "Student": "Schüler",
    "Teacher": "Lehrer",
    "External": "Externe",
}


def group_name_for_account_type(account_type: str) -> str:
    """将旧版账户类型转换为折扣组名称"""
    return ACCOUNT_TYPE_GROUP_NAMES.get(account_type, account_type)


class DiscountGroupSource(Protocol):
    def list_ordered_by_name(self) -> List[DiscountGroup]:
        ...


class _Snapshot(NamedTuple):
    groups: Tuple[DiscountGroup, ...]
    populated_at: float


class DiscountGroupCache:
    """
    折扣组缓存

    列表和时间戳作为一个不可变快照整体替换，读取时只取一次引用。
    invalidate 会递增代数，失效前发起的查询结果不会再写入缓存。
    """

    def __init__(self, ttl_seconds: Optional[float] = None,
                 clock: Callable[[], float] = time.time):
        self.ttl_seconds = settings.discount_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.clock = clock
        self._lock = threading.Lock()
        self._snapshot: Optional[_Snapshot] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_populated(self) -> bool:
        return self._snapshot is not None

    def get_fresh(self, now: Optional[float] = None) -> Optional[Tuple[DiscountGroup, ...]]:
        """返回未过期的缓存数据，没有或已过期时返回 None"""
        snapshot = self._snapshot
        if snapshot is None:
            return None

        now = self.clock() if now is None else now
        if now - snapshot.populated_at >= self.ttl_seconds:
            return None
        return snapshot.groups

    def replace(self, groups: Sequence[DiscountGroup], populated_at: float,
                generation: Optional[int] = None) -> bool:
        """整体替换缓存；generation 与当前代数不一致时放弃写入"""
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._snapshot = _Snapshot(tuple(groups), populated_at)
            return True

    def invalidate(self):
        with self._lock:
            self._snapshot = None
            self._generation += 1


class DiscountEngine:
    """折扣引擎"""

    def __init__(self, repository: DiscountGroupSource,
                 cache: Optional[DiscountGroupCache] = None):
        self.repository = repository
        self.cache = cache or DiscountGroupCache()

    def _load_groups(self) -> Tuple[List[DiscountGroup], DiscountSource]:
        now = self.cache.clock()
        cached = self.cache.get_fresh(now)
        if cached is not None:
            return list(cached), DiscountSource.LIVE

        generation = self.cache.generation
        try:
            groups = list(self.repository.list_ordered_by_name())
        except Exception:
            logger.exception("Failed to fetch discount groups, using fallback table")
            # 默认表不写入缓存，下次调用重新查询
            return list(FALLBACK_DISCOUNT_GROUPS), DiscountSource.FALLBACK

        if not self.cache.replace(groups, now, generation):
            logger.debug("Discount group cache invalidated during fetch, result not cached")
        return groups, DiscountSource.LIVE

    def list_discount_groups(self) -> List[DiscountGroup]:
        """获取全部折扣组（按名称升序），优先使用缓存"""
        groups, _ = self._load_groups()
        return groups

    def _resolve(self, name: Optional[str]) -> Tuple[Optional[DiscountGroup], DiscountSource]:
        if not name:
            return None, DiscountSource.NOT_FOUND

        groups, source = self._load_groups()
        wanted = name.casefold()
        for group in groups:
            if group.name.casefold() == wanted:
                return group, source
        return None, DiscountSource.NOT_FOUND

    def find_group_by_name(self, name: Optional[str]) -> Optional[DiscountGroup]:
        """按名称查找折扣组（不区分大小写的精确匹配）"""
        group, _ = self._resolve(name)
        return group

    def calculate_discount_by_group_name(self, original_price: float,
                                         group_name: Optional[str]) -> DiscountCalculation:
        """
        按折扣组名称计算折扣

        Args:
            original_price: 原价（小计）
            group_name: 折扣组名称，可为空

        Returns:
            DiscountCalculation: 未匹配到折扣组时折扣为0，按原价收费
        """
        original_price = _normalize_price(original_price)
        group, source = self._resolve(group_name)

        if group is None:
            return DiscountCalculation(
                original_price=original_price,
                discount_percentage=0,
                discount_amount=0,
                final_price=original_price,
                group_name=group_name or UNKNOWN_GROUP_NAME,
                source=DiscountSource.NOT_FOUND,
            )

        percentage = _clamp_percentage(group)
        discount_amount = original_price * percentage / 100
        return DiscountCalculation(
            original_price=original_price,
            discount_percentage=percentage,
            discount_amount=discount_amount,
            final_price=original_price - discount_amount,
            group_name=group.name,
            source=source,
        )

    def calculate_discount_by_account_type(self, original_price: float,
                                           account_type: Optional[str]) -> DiscountCalculation:
        """按旧版账户类型计算折扣"""
        group_name = group_name_for_account_type(account_type) if account_type else account_type
        return self.calculate_discount_by_group_name(original_price, group_name)

    def invalidate_cache(self):
        """使缓存失效，下次查询强制读取数据库"""
        self.cache.invalidate()
        logger.info("Discount group cache invalidated")


def _normalize_price(original_price) -> float:
    try:
        price = float(original_price)
    except (TypeError, ValueError):
        logger.warning("Non-numeric price %r treated as 0", original_price)
        return 0.0

    if math.isnan(price):
        logger.warning("NaN price treated as 0")
        return 0.0
    if price < 0:
        logger.warning("Negative price %s passed to discount calculation", price)
    return price


def _clamp_percentage(group: DiscountGroup) -> float:
    percentage = group.discount_percentage
    if math.isnan(percentage):
        clamped = 0.0
    else:
        clamped = min(max(percentage, 0.0), 100.0)
    if clamped != percentage:
        logger.warning(
            "Discount group %s has out-of-range percentage %s, clamped to %s",
            group.name, percentage, clamped
        )
    return clamped


# 全局折扣引擎实例
discount_engine = DiscountEngine(DiscountGroupRepository(db_manager))


def get_discount_engine() -> DiscountEngine:
    """FastAPI 依赖：获取折扣引擎"""
    return discount_engine
