"""
折扣组数据访问
折扣引擎只依赖 list_ordered_by_name，其余方法供管理服务使用
"""

import uuid
from datetime import datetime
from typing import Dict, Any, List, Optional

from ..core.database import DatabaseManager, db_manager
from ..models.discount import DiscountGroup

_COLUMNS = "id, name, description, discount_percentage, created_at, updated_at"


def _row_to_group(row: tuple) -> DiscountGroup:
    return DiscountGroup(
        id=row[0],
        name=row[1],
        description=row[2] or "",
        discount_percentage=row[3],
        created_at=row[4],
        updated_at=row[5],
    )


class DiscountGroupRepository:
    """折扣组仓储"""

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or db_manager

    def list_ordered_by_name(self) -> List[DiscountGroup]:
        """按名称升序获取全部折扣组"""
        rows = self.db.execute_query(f"SELECT {_COLUMNS} FROM discount_groups ORDER BY name")
        return [_row_to_group(row) for row in rows]

    def get(self, group_id: str, conn=None) -> Optional[DiscountGroup]:
        query = f"SELECT {_COLUMNS} FROM discount_groups WHERE id = ?"
        if conn is not None:
            row = conn.execute(query, [group_id]).fetchone()
        else:
            row = self.db.execute_one(query, [group_id])
        return _row_to_group(row) if row else None

    def get_by_name(self, name: str, conn=None) -> Optional[DiscountGroup]:
        """按名称查找（不区分大小写）"""
        query = f"SELECT {_COLUMNS} FROM discount_groups WHERE lower(name) = lower(?)"
        if conn is not None:
            row = conn.execute(query, [name]).fetchone()
        else:
            row = self.db.execute_one(query, [name])
        return _row_to_group(row) if row else None

    def insert(self, conn, name: str, description: str, discount_percentage: float) -> str:
        group_id = str(uuid.uuid4())
        now = datetime.now()
        conn.execute(
            """
            INSERT INTO discount_groups (id, name, description, discount_percentage, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [group_id, name, description, discount_percentage, now, now]
        )
        return group_id

    def update(self, conn, group_id: str, fields: Dict[str, Any]):
        """更新指定字段并刷新 updated_at"""
        fields = dict(fields)
        fields["updated_at"] = datetime.now()
        assignments = ", ".join(f"{column} = ?" for column in fields)
        conn.execute(
            f"UPDATE discount_groups SET {assignments} WHERE id = ?",
            [*fields.values(), group_id]
        )

    def delete(self, conn, group_id: str):
        conn.execute("DELETE FROM discount_groups WHERE id = ?", [group_id])
