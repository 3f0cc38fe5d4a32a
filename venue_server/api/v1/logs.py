"""
日志管理路由模块
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...core.database import DatabaseManager
from ...schemas.common import LogPage
from ..deps import get_db

router = APIRouter()


@router.get("/logs", response_model=LogPage)
def get_logs(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    action: Optional[str] = None,
    db: DatabaseManager = Depends(get_db)
):
    """分页查看操作日志，最新在前"""
    return db.list_logs(page, size, action)
