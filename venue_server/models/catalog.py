"""
目录相关数据模型
套餐、餐食选项、主题、背景板（mampara）、附加项，以及已有预约

后端字段可能是西班牙语命名（precio_lunes_jueves 等），通过别名同时兼容。
"""

from datetime import date as date_type, datetime, time
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import AliasChoices, Field, field_validator

from .base import CatalogEntity, LenientPrice
from ..utils.values import to_date, to_time


class Shift(str, Enum):
    """餐食选项适用时段"""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    BOTH = "both"


class ReservationStatus(str, Enum):
    """预约状态枚举"""
    PENDING = "pending"        # 待确认
    CONFIRMED = "confirmed"    # 已确认
    CANCELLED = "cancelled"    # 已取消
    COMPLETED = "completed"    # 已完成


# 只有这两种状态会占用时段
BLOCKING_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})

_SHIFT_ALIASES = {
    "matutino": Shift.MORNING,
    "vespertino": Shift.AFTERNOON,
    "ambos": Shift.BOTH,
}

STATUS_ALIASES = {
    "pendiente": ReservationStatus.PENDING,
    "confirmada": ReservationStatus.CONFIRMED,
    "cancelada": ReservationStatus.CANCELLED,
    "completada": ReservationStatus.COMPLETED,
    "canceled": ReservationStatus.CANCELLED,
}


class Package(CatalogEntity):
    """套餐：周一至周四与周五至周日两档价格"""
    id: int
    name: str = Field("", validation_alias=AliasChoices("name", "nombre"))
    price_weekday: LenientPrice = Field(
        None, validation_alias=AliasChoices("price_weekday", "precio_lunes_jueves"))
    price_weekend: LenientPrice = Field(
        None, validation_alias=AliasChoices("price_weekend", "precio_viernes_domingo"))
    active: bool = Field(True, validation_alias=AliasChoices("active", "activo"))


class FoodOption(CatalogEntity):
    """餐食选项"""
    id: int
    name: str = Field("", validation_alias=AliasChoices("name", "nombre"))
    extra_price: LenientPrice = Field(
        None, validation_alias=AliasChoices("extra_price", "precio_extra"))
    shift: Shift = Field(Shift.BOTH, validation_alias=AliasChoices("shift", "turno"))
    active: bool = Field(True, validation_alias=AliasChoices("active", "activo"))

    @field_validator("shift", mode="before")
    @classmethod
    def normalize_shift(cls, v):
        if isinstance(v, str):
            return _SHIFT_ALIASES.get(v.strip().lower(), v.strip().lower())
        return v if v is not None else Shift.BOTH


class Theme(CatalogEntity):
    """主题，只有启用的可选"""
    id: int
    name: str = Field("", validation_alias=AliasChoices("name", "nombre"))
    active: bool = Field(True, validation_alias=AliasChoices("active", "activo"))
    photo_url: Optional[str] = Field(None, validation_alias=AliasChoices("photo_url", "foto"))


class Mampara(CatalogEntity):
    """主题背景板，按块数销售，隶属于唯一主题"""
    id: int
    theme_id: Optional[int] = Field(None, validation_alias=AliasChoices("theme_id", "id_tematica"))
    pieces: int = Field(0, validation_alias=AliasChoices("pieces", "piezas"))
    price: LenientPrice = Field(None, validation_alias=AliasChoices("price", "precio"))
    active: bool = Field(True, validation_alias=AliasChoices("active", "activo"))
    photo_url: Optional[str] = Field(None, validation_alias=AliasChoices("photo_url", "foto"))


class Extra(CatalogEntity):
    """附加项，可选数量"""
    id: int
    name: str = Field("", validation_alias=AliasChoices("name", "nombre"))
    price: LenientPrice = Field(None, validation_alias=AliasChoices("price", "precio"))
    active: bool = Field(True, validation_alias=AliasChoices("active", "activo"))


class ExistingReservation(CatalogEntity):
    """已有预约（只读，用于时段可用性判断）"""
    id: Optional[int] = None
    date: Optional[date_type] = Field(None, validation_alias=AliasChoices("date", "fecha_reserva"))
    start_time: Optional[time] = Field(None, validation_alias=AliasChoices("start_time", "hora_inicio"))
    end_time: Optional[time] = Field(None, validation_alias=AliasChoices("end_time", "hora_fin"))
    status: ReservationStatus = Field(
        ReservationStatus.PENDING, validation_alias=AliasChoices("status", "estado"))
    active: bool = Field(True, validation_alias=AliasChoices("active", "activo"))

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, v):
        return to_date(v)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def normalize_time(cls, v):
        return to_time(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, str):
            return STATUS_ALIASES.get(v.strip().lower(), v.strip().lower())
        return v

    @property
    def blocks_slot(self) -> bool:
        """是否占用时段"""
        return self.active and self.status in BLOCKING_STATUSES


class CatalogSnapshot(CatalogEntity):
    """一次会话内的只读目录快照"""
    packages: Tuple[Package, ...] = ()
    food_options: Tuple[FoodOption, ...] = ()
    themes: Tuple[Theme, ...] = ()
    mamparas: Tuple[Mampara, ...] = ()
    extras: Tuple[Extra, ...] = ()
    loaded_at: Optional[datetime] = None

    def package(self, package_id: Any) -> Optional[Package]:
        return _find(self.packages, package_id)

    def food_option(self, option_id: Any) -> Optional[FoodOption]:
        return _find(self.food_options, option_id)

    def theme(self, theme_id: Any) -> Optional[Theme]:
        return _find(self.themes, theme_id)

    def mampara(self, mampara_id: Any) -> Optional[Mampara]:
        return _find(self.mamparas, mampara_id)

    def extra(self, extra_id: Any) -> Optional[Extra]:
        return _find(self.extras, extra_id)

    def summary(self) -> Dict[str, int]:
        """各目录条目数"""
        return {
            "packages": len(self.packages),
            "food_options": len(self.food_options),
            "themes": len(self.themes),
            "mamparas": len(self.mamparas),
            "extras": len(self.extras),
        }


def _find(items, item_id: Any):
    """按id查找，id可以是字符串形式的数字"""
    try:
        key = int(item_id)
    except (TypeError, ValueError):
        return None
    for item in items:
        if item.id == key:
            return item
    return None


def active_only(items: List[Any]) -> List[Any]:
    """过滤出启用的条目"""
    return [item for item in items if item.active]
