"""
提交适配模块
表单形态的预约草稿 <-> 预约后端的扁平载荷

正向（提交）：
- 下拉框对象等富选择值只保留id，未选为 None
- 附加项统一为 {id, quantity} 整数，无法转换的条目丢弃，同id只保留第一条
- 日期只保留日历日（YYYY-MM-DD），避免跨时区差一天
- 时段展开为开始/结束时间
- 总价四舍五入到两位小数，不论是否手工填写

反向（编辑回填）：
- 按id在当前目录中查回选择值，找不到的保持未选，不让整个表单失败
"""

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from ..models.catalog import (
    STATUS_ALIASES, CatalogSnapshot, FoodOption, Mampara, Package, ReservationStatus, Theme
)
from ..models.reservation import (
    SLOT_TABLE, ExtraSelection, PayloadExtra, ReservationDraft, ReservationPayload,
    Selection, TimeSlot, normalize_selection, slot_for_start_time
)
from ..utils.values import round_money, to_date, to_decimal, to_int, to_time
from . import pricing_service

_SLOT_ALIASES = {
    "mañana": TimeSlot.MORNING,
    "tarde": TimeSlot.AFTERNOON,
}


def _pick(record: Dict[str, Any], *keys: str) -> Any:
    """取第一个存在且非空的字段"""
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def normalize_status(raw: Any) -> ReservationStatus:
    """状态值，无法识别时按待确认处理"""
    if isinstance(raw, ReservationStatus):
        return raw
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in STATUS_ALIASES:
            return STATUS_ALIASES[text]
        try:
            return ReservationStatus(text)
        except ValueError:
            pass
    return ReservationStatus.PENDING


def normalize_time_slot(raw: Any) -> Optional[TimeSlot]:
    """时段：接受 "morning"、{"value": "morning"} 或开始时间 "11:00:00" """
    if raw is None or isinstance(raw, TimeSlot):
        return raw
    if isinstance(raw, dict):
        return normalize_time_slot(_pick(raw, "value", "slot", "start_time", "hora_inicio"))
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in _SLOT_ALIASES:
            return _SLOT_ALIASES[text]
        try:
            return TimeSlot(text)
        except ValueError:
            return slot_for_start_time(to_time(text))
    return slot_for_start_time(to_time(raw))


def normalize_extras(raw_extras: Optional[Iterable[Any]]) -> List[ExtraSelection]:
    """
    附加项列表规范化

    id 与数量都转为整数，转换失败或数量小于 1 的条目丢弃；
    同一id出现多次时保留第一条。
    """
    result: List[ExtraSelection] = []
    seen = set()
    for entry in raw_extras or []:
        if isinstance(entry, ExtraSelection):
            extra_id, quantity = entry.id, entry.quantity
        elif isinstance(entry, dict):
            nested = entry.get("ReservaExtra") if isinstance(entry.get("ReservaExtra"), dict) else {}
            extra_id = to_int(_pick(entry, "id", "value"))
            raw_quantity = _pick(entry, "quantity", "cantidad")
            if raw_quantity is None:
                raw_quantity = nested.get("cantidad", 1)
            quantity = to_int(raw_quantity)
        else:
            extra_id, quantity = to_int(entry), 1
        if extra_id is None or extra_id <= 0 or quantity is None or quantity < 1:
            continue
        if extra_id in seen:
            continue
        seen.add(extra_id)
        result.append(ExtraSelection(id=extra_id, quantity=quantity))
    return result


def draft_from_input(raw: Dict[str, Any]) -> ReservationDraft:
    """表单输入 -> 草稿，所有选择值经统一规范化"""
    package = normalize_selection(_pick(raw, "package_id", "package", "id_paquete"), Package)
    total = to_decimal(raw.get("total"))
    return ReservationDraft(
        id=to_int(raw.get("id")),
        user_id=to_int(_pick(raw, "user_id", "id_usuario")),
        package_id=package.id if package else None,
        date=to_date(_pick(raw, "date", "fecha_reserva")),
        time_slot=normalize_time_slot(_pick(raw, "time_slot", "hora_inicio")),
        food_option=normalize_selection(
            _pick(raw, "food_option", "food_option_id", "id_opcion_alimento"), FoodOption),
        theme=normalize_selection(_pick(raw, "theme", "theme_id", "id_tematica"), Theme),
        mampara=normalize_selection(_pick(raw, "mampara", "mampara_id", "id_mampara"), Mampara),
        extras=normalize_extras(raw.get("extras")),
        celebrant_name=str(_pick(raw, "celebrant_name", "nombre_festejado") or "").strip(),
        celebrant_age=to_int(_pick(raw, "celebrant_age", "edad_festejado")),
        celebrant_gender=_pick(raw, "celebrant_gender", "genero_festejado"),
        comments=str(_pick(raw, "comments", "comentarios") or ""),
        status=normalize_status(_pick(raw, "status", "estado")),
        active=raw.get("active", True) is not False,
        total=total if total is not None else Decimal("0"),
        manual_total=bool(raw.get("manual_total", False)),
    )


def to_payload(draft: ReservationDraft,
               catalog: Optional[CatalogSnapshot] = None) -> ReservationPayload:
    """
    草稿 -> 后端载荷

    Args:
        draft: 预约草稿
        catalog: 目录快照；提供时未手工填写的总价按规则重算

    Returns:
        ReservationPayload: 只含id的扁平载荷
    """
    breakdown = pricing_service.price_breakdown(draft, catalog) if catalog else None
    if draft.manual_total or breakdown is None:
        total = round_money(to_decimal(draft.total) or Decimal("0"))
    else:
        total = breakdown.computed_total

    if breakdown is not None:
        tuesday_fee = breakdown.tuesday_fee
    else:
        tuesday_fee = pricing_service.tuesday_surcharge(draft.date) if draft.package_id else Decimal("0")

    window = SLOT_TABLE.get(draft.time_slot) if draft.time_slot else None

    return ReservationPayload(
        id=draft.id,
        user_id=draft.user_id,
        package_id=draft.package_id,
        food_option_id=draft.food_option_id,
        theme_id=draft.theme_id,
        mampara_id=draft.mampara_id,
        extras=[PayloadExtra(id=e.id, quantity=e.quantity) for e in normalize_extras(draft.extras)],
        date=draft.date.isoformat() if draft.date else None,
        start_time=window.start.strftime("%H:%M:%S") if window else None,
        end_time=window.end.strftime("%H:%M:%S") if window else None,
        celebrant_name=draft.celebrant_name,
        celebrant_age=draft.celebrant_age,
        celebrant_gender=draft.celebrant_gender,
        comments=draft.comments,
        total=float(total),
        tuesday_fee=float(round_money(tuesday_fee)),
        status=draft.status,
        active=draft.active,
    )


def build_payload(raw: Dict[str, Any],
                  catalog: Optional[CatalogSnapshot] = None) -> ReservationPayload:
    """表单输入直接转为后端载荷"""
    return to_payload(draft_from_input(raw), catalog)


def _resolve(record: Dict[str, Any], id_keys, nested_keys, items, lookup, model) -> Optional[Selection]:
    """
    按id在目录中查回选择值

    目录中有该类条目但找不到id时保持未选；
    目录为空（尚未加载）时退回使用记录里嵌套的对象。
    """
    item_id = to_int(_pick(record, *id_keys))
    if items:
        found = lookup(item_id) if item_id is not None else None
        return Selection[model](id=found.id, embedded=found) if found else None
    nested = _pick(record, *nested_keys)
    if isinstance(nested, dict):
        return normalize_selection(nested, model)
    return None


def from_record(record: Optional[Dict[str, Any]],
                catalog: Optional[CatalogSnapshot] = None) -> Optional[ReservationDraft]:
    """持久化的预约记录 -> 可编辑的草稿"""
    if not record:
        return None
    catalog = catalog or CatalogSnapshot()

    package_id = to_int(_pick(record, "package_id", "id_paquete"))
    if catalog.packages and catalog.package(package_id) is None:
        package_id = None

    extras = normalize_extras(record.get("extras"))
    if catalog.extras:
        extras = [e for e in extras if catalog.extra(e.id) is not None]

    day = to_date(_pick(record, "date", "fecha_reserva"))
    fee = to_decimal(_pick(record, "tuesday_fee", "tuesdayFee"))
    if not fee:
        fee = pricing_service.tuesday_surcharge(day)
    total = to_decimal(record.get("total"))

    return ReservationDraft(
        id=to_int(record.get("id")),
        user_id=to_int(_pick(record, "user_id", "id_usuario")),
        package_id=package_id,
        date=day,
        time_slot=normalize_time_slot(_pick(record, "start_time", "hora_inicio", "time_slot")),
        food_option=_resolve(record, ("food_option_id", "id_opcion_alimento"),
                             ("food_option", "opcionAlimento"),
                             catalog.food_options, catalog.food_option, FoodOption),
        theme=_resolve(record, ("theme_id", "id_tematica"), ("theme", "tematicaReserva"),
                       catalog.themes, catalog.theme, Theme),
        mampara=_resolve(record, ("mampara_id", "id_mampara"), ("mampara",),
                         catalog.mamparas, catalog.mampara, Mampara),
        extras=extras,
        celebrant_name=str(_pick(record, "celebrant_name", "nombre_festejado") or ""),
        celebrant_age=to_int(_pick(record, "celebrant_age", "edad_festejado")),
        celebrant_gender=_pick(record, "celebrant_gender", "genero_festejado"),
        comments=str(_pick(record, "comments", "comentarios") or ""),
        status=normalize_status(_pick(record, "status", "estado")),
        active=record.get("active", record.get("activo", True)) is not False,
        total=total if total is not None else Decimal("0"),
        manual_total=bool(record.get("manual_total", False)),
        tuesday_fee=fee,
    )
