"""
预约草稿相关数据模型
"""

from datetime import date as date_type, time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from .base import BaseEntity
from .catalog import CatalogEntity, FoodOption, Mampara, ReservationStatus, Theme
from ..utils.values import to_int

T = TypeVar("T", bound=CatalogEntity)


class TimeSlot(str, Enum):
    """每日固定的两个时段"""
    MORNING = "morning"
    AFTERNOON = "afternoon"


class SlotWindow(BaseModel):
    """时段的起止时间"""
    slot: TimeSlot
    start: time
    end: time

    model_config = {"frozen": True}

    @property
    def label(self) -> str:
        return f"{self.slot.value} ({self.start:%H:%M} - {self.end:%H:%M})"


SLOT_TABLE: Dict[TimeSlot, SlotWindow] = {
    TimeSlot.MORNING: SlotWindow(slot=TimeSlot.MORNING, start=time(11, 0), end=time(16, 0)),
    TimeSlot.AFTERNOON: SlotWindow(slot=TimeSlot.AFTERNOON, start=time(17, 0), end=time(22, 0)),
}


def slot_for_start_time(start: Optional[time]) -> Optional[TimeSlot]:
    """根据开始时间反查时段"""
    for slot, window in SLOT_TABLE.items():
        if start is not None and window.start == start:
            return slot
    return None


class DateAvailability(str, Enum):
    """日历上某日的预约状态"""
    PAST = "past"                  # 已过去
    TOO_SOON = "too_soon"          # 不足提前预约天数
    UNAVAILABLE = "unavailable"    # 两个时段都已约满
    PARTIAL = "partial"            # 仅剩一个时段
    AVAILABLE = "available"        # 两个时段都可约
    SELECTION_REQUIRED = "selection_required"  # 尚未选择日期


class Selection(BaseModel, Generic[T]):
    """
    目录选择值：只有id，或者id加上选择时携带的目录数据

    携带的数据优先于目录查询，保证目录变更后价格仍按选择时计算。
    """
    id: int
    embedded: Optional[T] = None


def normalize_selection(raw: Any, model: Type[T]) -> Optional[Selection[T]]:
    """
    把各种形态的选择值统一为 Selection

    支持：None/空值、裸id（int或数字字符串）、目录模型实例、Selection、
    {"id": ..} 目录字典，以及下拉框形态 {"value", "label", "data"}。
    无法识别的输入视为未选择。
    """
    if raw is None or raw == "" or isinstance(raw, bool):
        return None
    if isinstance(raw, Selection):
        if raw.embedded is None or isinstance(raw.embedded, model):
            return Selection[model](id=raw.id, embedded=raw.embedded)
        return Selection[model](id=raw.id)
    if isinstance(raw, model):
        return Selection[model](id=raw.id, embedded=raw)
    if isinstance(raw, dict):
        return _selection_from_dict(raw, model)

    item_id = to_int(raw)
    if item_id is None or item_id <= 0:
        return None
    return Selection[model](id=item_id)


def _selection_from_dict(raw: Dict[str, Any], model: Type[T]) -> Optional[Selection[T]]:
    data = raw.get("data") if isinstance(raw.get("data"), dict) else None
    embedded_raw = raw.get("embedded") if isinstance(raw.get("embedded"), dict) else None

    item_id = None
    for candidate in (raw.get("value"), raw.get("id"),
                      (data or {}).get("id"), (embedded_raw or {}).get("id")):
        item_id = to_int(candidate)
        if item_id is not None:
            break
    if item_id is None or item_id <= 0:
        return None

    # 下拉框对象里的价格可能放在顶层，也可能在 data 里
    payload = {k: v for k, v in raw.items() if k not in ("value", "label", "data", "embedded")}
    payload.update(data or {})
    payload.update(embedded_raw or {})
    payload["id"] = item_id
    if len(payload) == 1:
        return Selection[model](id=item_id)

    try:
        embedded = model.model_validate(payload)
    except ValidationError:
        embedded = None
    return Selection[model](id=item_id, embedded=embedded)


class ExtraSelection(BaseModel):
    """已选附加项"""
    id: int = Field(..., gt=0)
    quantity: int = Field(1, ge=1)


class ReservationDraft(BaseEntity):
    """预约草稿（表单状态）"""
    id: Optional[int] = None
    user_id: Optional[int] = None
    package_id: Optional[int] = None
    date: Optional[date_type] = None
    time_slot: Optional[TimeSlot] = None
    food_option: Optional[Selection[FoodOption]] = None
    theme: Optional[Selection[Theme]] = None
    mampara: Optional[Selection[Mampara]] = None
    extras: List[ExtraSelection] = Field(default_factory=list)
    celebrant_name: str = ""
    celebrant_age: Optional[int] = None
    celebrant_gender: Optional[str] = None
    comments: str = ""
    status: ReservationStatus = ReservationStatus.PENDING
    active: bool = True
    total: Decimal = Decimal("0")
    manual_total: bool = False  # 为真时 total 为手工金额，不随依赖重算
    tuesday_fee: Decimal = Decimal("0")

    # 选择值可能来自序列化后的草稿，携带的目录数据按对应模型重新解析
    @field_validator("food_option", mode="before")
    @classmethod
    def normalize_food_option(cls, v):
        return normalize_selection(v, FoodOption)

    @field_validator("theme", mode="before")
    @classmethod
    def normalize_theme(cls, v):
        return normalize_selection(v, Theme)

    @field_validator("mampara", mode="before")
    @classmethod
    def normalize_mampara(cls, v):
        return normalize_selection(v, Mampara)

    @property
    def food_option_id(self) -> Optional[int]:
        return self.food_option.id if self.food_option else None

    @property
    def theme_id(self) -> Optional[int]:
        return self.theme.id if self.theme else None

    @property
    def mampara_id(self) -> Optional[int]:
        return self.mampara.id if self.mampara else None


class PayloadExtra(BaseModel):
    """提交给后端的附加项"""
    id: int
    quantity: int


class ReservationPayload(BaseModel):
    """提交给预约后端的扁平载荷，只含id"""
    id: Optional[int] = None
    user_id: Optional[int] = None
    package_id: Optional[int] = None
    food_option_id: Optional[int] = None
    theme_id: Optional[int] = None
    mampara_id: Optional[int] = None
    extras: List[PayloadExtra] = Field(default_factory=list)
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    celebrant_name: str = ""
    celebrant_age: Optional[int] = None
    celebrant_gender: Optional[str] = None
    comments: str = ""
    total: float = 0.0
    tuesday_fee: float = 0.0
    status: ReservationStatus = ReservationStatus.PENDING
    active: bool = True

    def to_api_dict(self) -> Dict[str, Any]:
        """转为请求体；新建时不带 id"""
        data = self.model_dump(mode="json")
        if self.id is None:
            data.pop("id")
        return data


class SlotBooking(BaseModel):
    """某日两个时段的占用情况"""
    morning_booked: bool = False
    afternoon_booked: bool = False

    def is_booked(self, slot: TimeSlot) -> bool:
        if slot == TimeSlot.MORNING:
            return self.morning_booked
        return self.afternoon_booked

    @property
    def booked_count(self) -> int:
        return int(self.morning_booked) + int(self.afternoon_booked)


class ExtraLine(BaseModel):
    """附加项明细行"""
    id: int
    name: Optional[str] = None
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


class PriceBreakdown(BaseModel):
    """价格明细"""
    base_package_price: Decimal = Decimal("0")
    tuesday_fee: Decimal = Decimal("0")
    package_price: Decimal = Decimal("0")
    food_option_price: Decimal = Decimal("0")
    mampara_price: Decimal = Decimal("0")
    extras: List[ExtraLine] = Field(default_factory=list)
    extras_total: Decimal = Decimal("0")
    computed_total: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    manual_total: bool = False

    @property
    def diverges(self) -> bool:
        """手工金额与计算金额不一致"""
        return self.manual_total and self.total != self.computed_total
