"""
预约草稿状态服务
持有一份可变的预约草稿，每次修改后显式重算价格与可用性，并通知订阅者

修改规则：
- 更换主题时，不属于新主题的背景板被清除
- 更换时段时，不适用于新时段的餐食选项被清除
- 更换日期时，若已选时段在新日期被占用则清除
- 停用的主题、背景板与餐食不可选
- 附加项数量降到 1 以下即移除，不保留数量为 0 的条目
- 手工金额开启时总价不随依赖变化
- 选中周二时只提示一次；附加费在定价中按日期计算，不会累加
"""

from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from ..config.settings import settings
from ..core.exceptions import DraftValidationError
from ..models.catalog import (
    CatalogSnapshot, ExistingReservation, FoodOption, Mampara, Package, Shift, Theme, active_only
)
from ..models.reservation import (
    DateAvailability, ExtraSelection, PriceBreakdown, ReservationDraft, SlotWindow,
    TimeSlot, normalize_selection
)
from ..utils.values import round_money, to_date, to_decimal, to_int
from . import availability_service, pricing_service

Listener = Callable[["DraftState", List[str]], None]

TUESDAY_NOTICE = "tuesday_notice"
SLOT_CLEARED = "slot_cleared"
MAMPARA_CLEARED = "mampara_cleared"
FOOD_OPTION_CLEARED = "food_option_cleared"


class DraftState(BaseModel):
    """一次重算的结果"""
    draft: ReservationDraft
    breakdown: PriceBreakdown
    date_availability: DateAvailability
    slot_options: List[SlotWindow] = Field(default_factory=list)
    selectable_themes: List[Theme] = Field(default_factory=list)
    selectable_mamparas: List[Mampara] = Field(default_factory=list)
    selectable_food_options: List[FoodOption] = Field(default_factory=list)


def selectable_themes(catalog: CatalogSnapshot) -> List[Theme]:
    """可选主题：仅启用的"""
    return active_only(list(catalog.themes))


def selectable_mamparas(catalog: CatalogSnapshot, theme_id: Optional[int]) -> List[Mampara]:
    """可选背景板：启用的且属于所选主题；未选主题时为空"""
    if theme_id is None:
        return []
    return [m for m in catalog.mamparas if m.active and m.theme_id == theme_id]


def selectable_food_options(catalog: CatalogSnapshot,
                            time_slot: Optional[TimeSlot]) -> List[FoodOption]:
    """可选餐食：启用的且适用于所选时段；未选时段时返回全部启用项"""
    options = active_only(list(catalog.food_options))
    if time_slot is None:
        return options
    return [o for o in options if o.shift == Shift.BOTH or o.shift.value == time_slot.value]


def _is_inactive(selection, lookup) -> bool:
    """携带的数据或目录中任一标记为停用即视为停用"""
    for entry in (selection.embedded, lookup(selection.id)):
        if entry is not None and not entry.active:
            return True
    return False


def _food_option_fits(option: Optional[FoodOption], time_slot: Optional[TimeSlot]) -> bool:
    if option is None or time_slot is None:
        return True
    return option.shift == Shift.BOTH or option.shift.value == time_slot.value


class ReservationDraftSession:
    """
    预约草稿会话

    一个表单实例对应一个会话；目录与已有预约在创建时传入，只读。
    """

    def __init__(self, catalog: CatalogSnapshot,
                 reservations: Optional[Iterable[Any]] = None,
                 today: Optional[date] = None,
                 lead_days: Optional[int] = None,
                 draft: Optional[ReservationDraft] = None):
        self.catalog = catalog
        self.reservations: List[ExistingReservation] = list(reservations or [])
        self.today = today or date.today()
        self.lead_days = settings.customer_lead_days if lead_days is None else lead_days
        self.draft = draft.model_copy(deep=True) if draft else ReservationDraft()
        self._listeners: List[Listener] = []
        self._notified_tuesday: Optional[date] = None
        self.state = self._build_state()

    # ---- 订阅 ----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """订阅重算结果，返回取消订阅函数"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---- 修改操作 ----

    def set_package(self, package: Any) -> DraftState:
        selection = normalize_selection(package, Package)
        self.draft.package_id = selection.id if selection else None
        return self.recompute()

    def set_date(self, day: Any) -> DraftState:
        """选择日期；已选时段在新日期被占用时清除"""
        events: List[str] = []
        parsed = to_date(day)
        previous = self.draft.date
        self.draft.date = parsed

        if parsed is not None and parsed.weekday() == pricing_service.TUESDAY:
            if parsed != previous and self._notified_tuesday != parsed:
                events.append(TUESDAY_NOTICE)
                self._notified_tuesday = parsed
        else:
            self._notified_tuesday = None

        slot = self.draft.time_slot
        if slot is not None and not availability_service.is_slot_available(
                parsed, slot, self.reservations):
            self.draft.time_slot = None
            events.append(SLOT_CLEARED)
        return self.recompute(events)

    def set_time_slot(self, slot: Optional[TimeSlot]) -> DraftState:
        """选择时段；被占用的时段不接受，已选餐食不适用时清除"""
        events: List[str] = []
        if slot is not None and not availability_service.is_slot_available(
                self.draft.date, slot, self.reservations):
            slot = None
            events.append(SLOT_CLEARED)
        self.draft.time_slot = slot

        option = self._selected_food_option()
        if option is not None and not _food_option_fits(option, slot):
            self.draft.food_option = None
            events.append(FOOD_OPTION_CLEARED)
        return self.recompute(events)

    def set_food_option(self, option: Any) -> DraftState:
        """选择餐食；停用的选项视为未选"""
        selection = normalize_selection(option, FoodOption)
        if selection is not None and _is_inactive(selection, self.catalog.food_option):
            selection = None
        self.draft.food_option = selection
        return self.recompute()

    def set_theme(self, theme: Any) -> DraftState:
        """选择主题；停用的主题视为未选，不属于该主题的背景板被清除"""
        events: List[str] = []
        selection = normalize_selection(theme, Theme)
        if selection is not None and _is_inactive(selection, self.catalog.theme):
            selection = None
        self.draft.theme = selection
        mampara = self._selected_mampara()
        if self.draft.mampara is not None and (
                mampara is None or mampara.theme_id != self.draft.theme_id):
            self.draft.mampara = None
            events.append(MAMPARA_CLEARED)
        return self.recompute(events)

    def set_mampara(self, mampara: Any) -> DraftState:
        """选择背景板；必须启用且属于当前主题，否则视为未选"""
        selection = normalize_selection(mampara, Mampara)
        if selection is not None:
            candidate = selection.embedded or self.catalog.mampara(selection.id)
            if candidate is None or candidate.theme_id is None or \
                    candidate.theme_id != self.draft.theme_id or \
                    _is_inactive(selection, self.catalog.mampara):
                selection = None
        self.draft.mampara = selection
        return self.recompute()

    def add_extra(self, extra_id: Any, quantity: Any = 1) -> DraftState:
        """添加附加项；已存在时数量累加"""
        extra_id = to_int(extra_id)
        quantity = to_int(quantity)
        if extra_id is None or extra_id <= 0 or quantity is None or quantity < 1:
            return self.state
        for entry in self.draft.extras:
            if entry.id == extra_id:
                entry.quantity += quantity
                return self.recompute()
        self.draft.extras.append(ExtraSelection(id=extra_id, quantity=quantity))
        return self.recompute()

    def set_extra_quantity(self, extra_id: Any, quantity: Any) -> DraftState:
        """设置附加项数量，小于 1 时移除"""
        extra_id = to_int(extra_id)
        quantity = to_int(quantity)
        if quantity is None or quantity < 1:
            return self.remove_extra(extra_id)
        for entry in self.draft.extras:
            if entry.id == extra_id:
                entry.quantity = quantity
                return self.recompute()
        return self.add_extra(extra_id, quantity)

    def remove_extra(self, extra_id: Any) -> DraftState:
        extra_id = to_int(extra_id)
        self.draft.extras = [e for e in self.draft.extras if e.id != extra_id]
        return self.recompute()

    def set_celebrant(self, name: Optional[str] = None, age: Any = None,
                      gender: Optional[str] = None) -> DraftState:
        if name is not None:
            self.draft.celebrant_name = name.strip()
        if age is not None:
            self.draft.celebrant_age = to_int(age)
        if gender is not None:
            self.draft.celebrant_gender = gender
        return self.recompute()

    def set_comments(self, comments: Optional[str]) -> DraftState:
        self.draft.comments = comments or ""
        return self.recompute()

    def override_total(self, amount: Any) -> DraftState:
        """开启手工金额"""
        value = to_decimal(amount)
        if value is None or value < 0:
            return self.state
        self.draft.manual_total = True
        self.draft.total = round_money(value)
        return self.recompute()

    def clear_total_override(self) -> DraftState:
        """关闭手工金额，恢复按规则计算"""
        self.draft.manual_total = False
        return self.recompute()

    # ---- 重算与校验 ----

    def recompute(self, events: Optional[List[str]] = None) -> DraftState:
        """重算派生字段并通知订阅者"""
        self.state = self._build_state()
        for listener in list(self._listeners):
            listener(self.state, list(events or []))
        return self.state

    def _build_state(self) -> DraftState:
        breakdown = pricing_service.price_breakdown(self.draft, self.catalog)
        self.draft.tuesday_fee = breakdown.tuesday_fee
        if not self.draft.manual_total:
            self.draft.total = breakdown.computed_total

        return DraftState(
            draft=self.draft.model_copy(deep=True),
            breakdown=breakdown,
            date_availability=availability_service.date_availability(
                self.draft.date, self.reservations, self.today, self.lead_days),
            slot_options=availability_service.available_slot_options(
                self.draft.date, self.reservations),
            selectable_themes=selectable_themes(self.catalog),
            selectable_mamparas=selectable_mamparas(self.catalog, self.draft.theme_id),
            selectable_food_options=selectable_food_options(self.catalog, self.draft.time_slot),
        )

    def validate(self) -> None:
        """提交前校验，问题汇总后一次抛出"""
        problems = validate_draft(self.draft, self.catalog, self.reservations,
                                  self.today, self.lead_days)
        if problems:
            raise DraftValidationError(problems)

    def _selected_mampara(self) -> Optional[Mampara]:
        selection = self.draft.mampara
        if selection is None:
            return None
        return selection.embedded or self.catalog.mampara(selection.id)

    def _selected_food_option(self) -> Optional[FoodOption]:
        selection = self.draft.food_option
        if selection is None:
            return None
        return selection.embedded or self.catalog.food_option(selection.id)


def validate_draft(draft: ReservationDraft, catalog: CatalogSnapshot,
                   reservations: Optional[Iterable[Any]], today: date,
                   lead_days: int) -> List[Dict[str, str]]:
    """
    检查草稿能否提交

    Returns:
        list: 问题列表，每项 {"field", "message"}；为空表示可以提交
    """
    problems: List[Dict[str, str]] = []

    if draft.package_id is None or catalog.package(draft.package_id) is None:
        problems.append({"field": "package_id", "message": "请选择套餐"})

    availability = availability_service.date_availability(
        draft.date, reservations, today, lead_days)
    if availability == DateAvailability.SELECTION_REQUIRED:
        problems.append({"field": "date", "message": "请选择日期"})
    elif availability == DateAvailability.PAST:
        problems.append({"field": "date", "message": "不能预约过去的日期"})
    elif availability == DateAvailability.TOO_SOON:
        problems.append({"field": "date", "message": f"需至少提前 {lead_days} 天预约"})
    elif availability == DateAvailability.UNAVAILABLE:
        problems.append({"field": "date", "message": "该日期已约满"})

    if draft.time_slot is None:
        problems.append({"field": "time_slot", "message": "请选择时段"})
    elif draft.date is not None and not availability_service.is_slot_available(
            draft.date, draft.time_slot, reservations):
        problems.append({"field": "time_slot", "message": "所选时段已被预约"})

    if draft.food_option is not None and _is_inactive(draft.food_option, catalog.food_option):
        problems.append({"field": "food_option", "message": "所选餐食已停用"})

    if draft.theme is not None and _is_inactive(draft.theme, catalog.theme):
        problems.append({"field": "theme", "message": "所选主题已停用"})

    if draft.mampara is not None:
        mampara = draft.mampara.embedded or catalog.mampara(draft.mampara.id)
        if mampara is None or mampara.theme_id != draft.theme_id:
            problems.append({"field": "mampara", "message": "背景板与所选主题不匹配"})
        elif _is_inactive(draft.mampara, catalog.mampara):
            problems.append({"field": "mampara", "message": "所选背景板已停用"})

    if not draft.celebrant_name.strip():
        problems.append({"field": "celebrant_name", "message": "请填写寿星姓名"})
    if draft.celebrant_age is None or draft.celebrant_age < 0:
        problems.append({"field": "celebrant_age", "message": "请填写寿星年龄"})

    return problems
