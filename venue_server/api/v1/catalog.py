"""
目录路由模块
只返回当前可选的条目，具体过滤规则见 draft_service
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ...core.error_handler import create_success_response
from ...core.exceptions import ValidationError
from ...models.catalog import CatalogSnapshot
from ...models.reservation import TimeSlot
from ...services.catalog_service import CatalogService
from ...services.draft_service import (
    selectable_food_options, selectable_mamparas, selectable_themes
)
from ..deps import get_catalog_service, get_catalog_snapshot

router = APIRouter()


@router.get("/themes")
def list_themes(catalog: CatalogSnapshot = Depends(get_catalog_snapshot)):
    """启用的主题"""
    return create_success_response([t.model_dump() for t in selectable_themes(catalog)])


@router.get("/themes/{theme_id}/mamparas")
def list_mamparas(theme_id: int, catalog: CatalogSnapshot = Depends(get_catalog_snapshot)):
    """某主题下可选的背景板"""
    return create_success_response(
        [m.model_dump() for m in selectable_mamparas(catalog, theme_id)])


@router.get("/food-options")
def list_food_options(
    slot: Optional[str] = None,
    catalog: CatalogSnapshot = Depends(get_catalog_snapshot)
):
    """可选餐食，给出时段时只返回适用于该时段的"""
    time_slot = None
    if slot:
        try:
            time_slot = TimeSlot(slot)
        except ValueError:
            raise ValidationError("时段错误，应为 morning 或 afternoon", {"slot": slot})
    return create_success_response(
        [o.model_dump() for o in selectable_food_options(catalog, time_slot)])


@router.post("/refresh")
def refresh_catalog(service: CatalogService = Depends(get_catalog_service)):
    """丢弃目录缓存"""
    service.refresh()
    return create_success_response(message="目录缓存已清除")
