"""
数据库连接和管理模块
仅保存本服务的操作日志，预约数据由外部后端持久化
"""

import duckdb
from pathlib import Path
import json
from typing import Any, Dict, List, Optional
import threading

from .exceptions import DatabaseError
from ..config.settings import settings

# 操作日志表结构
SCHEMA_SQL = r"""
CREATE SEQUENCE IF NOT EXISTS logs_id_seq;
CREATE TABLE IF NOT EXISTS logs (
  log_id INTEGER DEFAULT nextval('logs_id_seq') PRIMARY KEY,
  reservation_id INTEGER,
  action TEXT NOT NULL,
  detail_json JSON,
  created_at TIMESTAMP DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_logs_action ON logs(action);
CREATE INDEX IF NOT EXISTS idx_logs_reservation ON logs(reservation_id);
"""


class DatabaseManager:
    """数据库管理器，封装所有数据库操作"""

    def __init__(self, db_path: Optional[str] = None):
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.RLock()
        self.db_path = db_path or self._get_db_path_from_settings()

    def _get_db_path_from_settings(self) -> str:
        """从设置中获取数据库路径"""
        db_url = settings.database_url
        if db_url.startswith("duckdb://"):
            return db_url.replace("duckdb://", "")
        return db_url

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        """获取数据库连接"""
        with self._lock:
            if self._connection is None:
                if self.db_path != ":memory:":
                    Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                self._connection = duckdb.connect(self.db_path)
                self._init_schema()
            return self._connection

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        return self.connection

    def _init_schema(self):
        """初始化数据库表结构"""
        try:
            self._connection.execute(SCHEMA_SQL)
        except Exception as e:
            raise DatabaseError(f"Failed to initialize schema: {e}")

    def init_database(self):
        """初始化数据库"""
        con = self.get_connection()
        con.execute(SCHEMA_SQL)

    def close(self):
        """关闭连接"""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None

    def execute_query(self, query: str, params: list = None) -> list:
        """执行查询并返回结果"""
        try:
            with self._lock:
                con = self.get_connection()
                if params:
                    return con.execute(query, params).fetchall()
                return con.execute(query).fetchall()
        except duckdb.Error as e:
            raise DatabaseError(f"Query execution failed: {e}")

    def execute_one(self, query: str, params: list = None) -> Optional[tuple]:
        """执行查询并返回单条结果"""
        try:
            with self._lock:
                con = self.get_connection()
                if params:
                    return con.execute(query, params).fetchone()
                return con.execute(query).fetchone()
        except duckdb.Error as e:
            raise DatabaseError(f"Query execution failed: {e}")

    def write_log(self, action: str, detail: Dict[str, Any],
                  reservation_id: Optional[int] = None) -> None:
        """写入一条操作日志"""
        self.execute_query(
            "INSERT INTO logs(reservation_id, action, detail_json) VALUES (?,?,?)",
            [reservation_id, action, json.dumps(detail, default=str, ensure_ascii=False)]
        )

    def list_logs(self, page: int = 1, size: int = 20,
                  action: Optional[str] = None) -> Dict[str, Any]:
        """分页读取操作日志，最新在前"""
        where = "WHERE action = ?" if action else ""
        params: List[Any] = [action] if action else []

        total_row = self.execute_one(f"SELECT COUNT(*) FROM logs {where}", params)
        total = total_row[0] if total_row else 0

        rows = self.execute_query(
            f"""
            SELECT log_id, reservation_id, action, detail_json, created_at
            FROM logs {where}
            ORDER BY log_id DESC
            LIMIT ? OFFSET ?
            """,
            params + [size, (page - 1) * size]
        )

        logs = []
        for row in rows:
            detail = row[3]
            if isinstance(detail, str):
                try:
                    detail = json.loads(detail)
                except json.JSONDecodeError:
                    pass
            logs.append({
                "log_id": row[0],
                "reservation_id": row[1],
                "action": row[2],
                "detail": detail,
                "created_at": str(row[4])
            })

        return {
            "logs": logs,
            "total": total,
            "page": page,
            "size": size,
            "pages": (total + size - 1) // size
        }


# 全局数据库管理器实例
db_manager = DatabaseManager()
