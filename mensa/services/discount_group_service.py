"""
折扣组管理服务
处理折扣组的增删改，并在每次成功修改后立即使折扣引擎缓存失效
"""

import json
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import Depends

from ..core.database import DatabaseManager, db_manager
from ..core.exceptions import (
    DiscountGroupNotFoundError,
    DuplicateDiscountGroupError,
    ValidationError,
)
from ..models.discount import DiscountGroup, DiscountGroupCreate, DiscountGroupUpdate
from .discount_engine import DiscountEngine, discount_engine, get_discount_engine
from .discount_group_repository import DiscountGroupRepository

logger = logging.getLogger(__name__)


class DiscountGroupService:
    """折扣组管理服务"""

    def __init__(self, db: Optional[DatabaseManager] = None,
                 engine: Optional[DiscountEngine] = None,
                 repository: Optional[DiscountGroupRepository] = None):
        self.db = db or db_manager
        self.repository = repository or DiscountGroupRepository(self.db)
        self.engine = engine or discount_engine

    def list_groups(self) -> List[DiscountGroup]:
        """管理端列表，直接读取数据库"""
        return self.repository.list_ordered_by_name()

    def get_group(self, group_id: str) -> DiscountGroup:
        group = self.repository.get(group_id)
        if not group:
            raise DiscountGroupNotFoundError(group_id)
        return group

    def create_group(self, data: DiscountGroupCreate, actor: Optional[str] = None) -> DiscountGroup:
        """创建折扣组"""
        with self.db.transaction() as conn:
            if self.repository.get_by_name(data.name, conn=conn):
                raise DuplicateDiscountGroupError(data.name)

            group_id = self.repository.insert(
                conn, data.name, data.description, data.discount_percentage
            )
            self._log_group_operation(conn, group_id, "create", actor, data.model_dump())

        self.engine.invalidate_cache()
        logger.info("Discount group %s created by %s", data.name, actor)
        return self.get_group(group_id)

    def update_group(self, group_id: str, data: DiscountGroupUpdate,
                     actor: Optional[str] = None) -> DiscountGroup:
        """更新折扣组（仅更新提供的字段）"""
        fields = data.model_dump(exclude_none=True)
        if not fields:
            raise ValidationError("没有需要更新的字段")

        with self.db.transaction() as conn:
            current = self.repository.get(group_id, conn=conn)
            if not current:
                raise DiscountGroupNotFoundError(group_id)

            new_name = fields.get("name")
            if new_name:
                existing = self.repository.get_by_name(new_name, conn=conn)
                if existing and existing.id != group_id:
                    raise DuplicateDiscountGroupError(new_name)

            self.repository.update(conn, group_id, fields)
            self._log_group_operation(conn, group_id, "update", actor, fields)

        self.engine.invalidate_cache()
        logger.info("Discount group %s updated by %s", group_id, actor)
        return self.get_group(group_id)

    def delete_group(self, group_id: str, actor: Optional[str] = None):
        """删除折扣组"""
        with self.db.transaction() as conn:
            current = self.repository.get(group_id, conn=conn)
            if not current:
                raise DiscountGroupNotFoundError(group_id)

            self.repository.delete(conn, group_id)
            self._log_group_operation(conn, group_id, "delete", actor, {"name": current.name})

        self.engine.invalidate_cache()
        logger.info("Discount group %s deleted by %s", current.name, actor)

    def _log_group_operation(self, conn, group_id: str, operation: str,
                             actor: Optional[str], changes: dict):
        """记录操作日志"""
        details = {
            "group_id": group_id,
            "operation": operation,
            "changes": changes,
        }
        conn.execute(
            "INSERT INTO logs (actor, action, detail_json, created_at) VALUES (?, ?, ?, ?)",
            [
                actor,
                f"discount_group_{operation}",
                json.dumps(details, ensure_ascii=False),
                datetime.now(),
            ]
        )


def get_discount_group_service(
    engine: DiscountEngine = Depends(get_discount_engine),
) -> DiscountGroupService:
    """FastAPI 依赖：获取折扣组管理服务"""
    return DiscountGroupService(engine=engine)
