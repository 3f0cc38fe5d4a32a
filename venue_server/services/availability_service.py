"""
可用性服务模块
每天固定两个时段（上午 11:00-16:00、下午 17:00-22:00），
根据已有的有效预约判断某日哪些时段仍可预约，并给日历标注状态

只有 pending / confirmed 且未被停用的预约占用时段；
日期只按日历日比较，忽略时间与时区偏移。
"""

import calendar
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from ..core.exceptions import ValidationError
from ..models.catalog import ExistingReservation
from ..models.reservation import (
    SLOT_TABLE, DateAvailability, SlotBooking, SlotWindow, TimeSlot, slot_for_start_time
)
from ..utils.values import to_date


def _as_reservation(item: Any) -> Optional[ExistingReservation]:
    """把后端返回的预约转为模型，无法解析的忽略"""
    if isinstance(item, ExistingReservation):
        return item
    if isinstance(item, dict):
        try:
            return ExistingReservation.model_validate(item)
        except ValueError:
            return None
    return None


def booking_index(reservations: Optional[Iterable[Any]]) -> Dict[date, SlotBooking]:
    """按日期汇总被占用的时段"""
    index: Dict[date, SlotBooking] = {}
    for item in reservations or []:
        reservation = _as_reservation(item)
        if reservation is None or reservation.date is None or not reservation.blocks_slot:
            continue
        slot = slot_for_start_time(reservation.start_time)
        if slot is None:
            continue
        booking = index.setdefault(reservation.date, SlotBooking())
        if slot == TimeSlot.MORNING:
            booking.morning_booked = True
        else:
            booking.afternoon_booked = True
    return index


def slots_booked_for_date(day: Any, reservations: Optional[Iterable[Any]]) -> SlotBooking:
    """
    查询某日两个时段的占用情况

    Args:
        day: 候选日期
        reservations: 已有预约

    Returns:
        SlotBooking: morning_booked / afternoon_booked
    """
    parsed = to_date(day)
    if parsed is None:
        return SlotBooking()
    booking = booking_index(reservations).get(parsed)
    return booking.model_copy() if booking else SlotBooking()


def is_slot_available(day: Any, slot: Optional[TimeSlot],
                      reservations: Optional[Iterable[Any]]) -> bool:
    """时段在该日是否可约；未选日期或时段视为不可约"""
    if to_date(day) is None or slot is None:
        return False
    return not slots_booked_for_date(day, reservations).is_booked(slot)


def available_slot_options(day: Any, reservations: Optional[Iterable[Any]]) -> List[SlotWindow]:
    """时段下拉框的可选项，上午在前"""
    if to_date(day) is None:
        return []
    booking = slots_booked_for_date(day, reservations)
    return [window for slot, window in SLOT_TABLE.items() if not booking.is_booked(slot)]


def _classify(day: date, booking: SlotBooking, today: date, lead_days: int) -> DateAvailability:
    if day < today:
        return DateAvailability.PAST
    if lead_days > 0 and day < today + timedelta(days=lead_days):
        return DateAvailability.TOO_SOON
    if booking.booked_count == 2:
        return DateAvailability.UNAVAILABLE
    if booking.booked_count == 1:
        return DateAvailability.PARTIAL
    return DateAvailability.AVAILABLE


def date_availability(day: Any, reservations: Optional[Iterable[Any]],
                      today: Optional[date] = None, lead_days: int = 0) -> DateAvailability:
    """
    日期状态分类

    优先级：past > too_soon > 时段占用情况。
    lead_days 为最少提前天数，客户流程为 7，管理后台为 0（不限制）。
    未选择日期返回 SELECTION_REQUIRED，不会被当成可约。
    """
    parsed = to_date(day)
    if parsed is None:
        return DateAvailability.SELECTION_REQUIRED
    today = today or date.today()
    return _classify(parsed, slots_booked_for_date(parsed, reservations), today, lead_days)


def fully_booked_dates(reservations: Optional[Iterable[Any]]) -> List[date]:
    """两个时段都已约满的日期，升序"""
    return sorted(d for d, booking in booking_index(reservations).items()
                  if booking.booked_count == 2)


def parse_month(month: str) -> date:
    """解析 YYYY-MM，返回该月第一天"""
    if not isinstance(month, str) or len(month) != 7 or month[4] != "-":
        raise ValidationError("月份格式错误，应为 YYYY-MM", {"month": month})
    try:
        return date(int(month[:4]), int(month[5:]), 1)
    except ValueError:
        raise ValidationError("月份格式错误，应为 YYYY-MM", {"month": month})


def month_calendar(month: str, reservations: Optional[Iterable[Any]],
                   today: Optional[date] = None, lead_days: int = 0) -> List[Dict[str, Any]]:
    """整月每一天的状态"""
    first = parse_month(month)
    today = today or date.today()
    index = booking_index(reservations)
    days_in_month = calendar.monthrange(first.year, first.month)[1]

    result = []
    for offset in range(days_in_month):
        day = first + timedelta(days=offset)
        booking = index.get(day, SlotBooking())
        result.append({
            "date": day.isoformat(),
            "availability": _classify(day, booking, today, lead_days).value,
            "morning_booked": booking.morning_booked,
            "afternoon_booked": booking.afternoon_booked,
        })
    return result
