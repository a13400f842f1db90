"""
数据库连接和管理模块
提供 DuckDB 连接、表结构初始化和事务封装
"""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

import duckdb

from .exceptions import BaseApplicationError, DatabaseError
from ..config.settings import settings

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"

# 完整的表结构定义
SCHEMA_SQL = r"""
CREATE TABLE IF NOT EXISTS discount_groups (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  description TEXT NOT NULL,
  discount_percentage DOUBLE NOT NULL CHECK (discount_percentage >= 0 AND discount_percentage <= 100),
  created_at TIMESTAMP DEFAULT now(),
  updated_at TIMESTAMP DEFAULT now()
);

CREATE SEQUENCE IF NOT EXISTS logs_id_seq;
CREATE TABLE IF NOT EXISTS logs (
  log_id INTEGER DEFAULT nextval('logs_id_seq') PRIMARY KEY,
  actor TEXT,
  action TEXT,
  detail_json TEXT,
  created_at TIMESTAMP DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_logs_action ON logs(action);
"""


def db_path_from_url(db_url: str) -> str:
    """从 duckdb:// 形式的 URL 中解析数据库路径"""
    if db_url.startswith("duckdb://"):
        db_url = db_url[len("duckdb://"):]
    return db_url or IN_MEMORY


class DatabaseManager:
    """数据库管理器，封装所有数据库操作"""

    def __init__(self, db_path: Optional[str] = None):
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.RLock()
        self.db_path = db_path or db_path_from_url(settings.database_url)

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        """获取数据库连接，首次访问时建立连接并初始化表结构"""
        with self._lock:
            if self._connection is None:
                try:
                    if self.db_path != IN_MEMORY:
                        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                    self._connection = duckdb.connect(self.db_path)
                    self._connection.execute(SCHEMA_SQL)
                except (duckdb.Error, OSError) as e:
                    self._connection = None
                    raise DatabaseError(f"Failed to open database {self.db_path}: {e}")
                logger.info("Connected to database %s", self.db_path)
            return self._connection

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        return self.connection

    def init_database(self):
        """初始化数据库"""
        with self._lock:
            self.connection.execute(SCHEMA_SQL)

    def close(self):
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    @contextmanager
    def transaction(self) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        """
        数据库事务上下文管理器

        业务异常原样抛出，其余异常统一包装为 DatabaseError
        """
        with self._lock:
            conn = self.connection
            conn.execute("BEGIN")
            try:
                yield conn
                conn.execute("COMMIT")
            except BaseApplicationError:
                self._rollback(conn)
                raise
            except Exception as e:
                self._rollback(conn)
                raise DatabaseError(f"数据库操作失败: {e}")

    @staticmethod
    def _rollback(conn: duckdb.DuckDBPyConnection):
        try:
            conn.execute("ROLLBACK")
        except duckdb.Error as e:
            # 提交失败后事务已被中止
            logger.debug("Rollback skipped: %s", e)

    def execute_query(self, query: str, params: list = None) -> list:
        """执行查询并返回结果"""
        try:
            with self._lock:
                return self.connection.execute(query, params or []).fetchall()
        except duckdb.Error as e:
            raise DatabaseError(f"Query execution failed: {e}")

    def execute_one(self, query: str, params: list = None) -> Optional[tuple]:
        """执行查询并返回单条结果"""
        try:
            with self._lock:
                return self.connection.execute(query, params or []).fetchone()
        except duckdb.Error as e:
            raise DatabaseError(f"Query execution failed: {e}")


# 全局数据库管理器实例
db_manager = DatabaseManager()
