"""
可用性路由模块
时段占用、整月日历与单日状态
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...core.error_handler import create_success_response
from ...core.exceptions import ValidationError
from ...models.catalog import ExistingReservation
from ...schemas.availability import (
    CalendarDay, CalendarResponse, DateAvailabilityResponse, SlotOption, SlotsResponse
)
from ...services import availability_service
from ...services.reservation_service import lead_days_for
from ...utils.values import to_date
from ..deps import get_reservations

router = APIRouter()

FLOW_PATTERN = "^(customer|admin)$"


@router.get("/slots")
def get_slots(
    date: str,
    reservations: List[ExistingReservation] = Depends(get_reservations)
):
    """某日两个时段的占用情况与可选项"""
    day = to_date(date)
    if day is None:
        raise ValidationError("日期格式错误，应为 YYYY-MM-DD", {"date": date})

    booking = availability_service.slots_booked_for_date(day, reservations)
    options = availability_service.available_slot_options(day, reservations)
    return create_success_response(SlotsResponse(
        date=day.isoformat(),
        morning_booked=booking.morning_booked,
        afternoon_booked=booking.afternoon_booked,
        options=[SlotOption.from_window(w) for w in options],
    ).model_dump())


@router.get("/calendar")
def get_calendar(
    month: str,
    flow: str = Query("customer", pattern=FLOW_PATTERN),
    reservations: List[ExistingReservation] = Depends(get_reservations)
):
    """整月日历，每天标注 past / too_soon / unavailable / partial / available"""
    lead_days = lead_days_for(flow)
    first = availability_service.parse_month(month)
    days = availability_service.month_calendar(month, reservations, lead_days=lead_days)
    fully_booked = [d.isoformat() for d in availability_service.fully_booked_dates(reservations)
                    if (d.year, d.month) == (first.year, first.month)]
    return create_success_response(CalendarResponse(
        month=month,
        flow=flow,
        lead_days=lead_days,
        days=[CalendarDay(**d) for d in days],
        fully_booked=fully_booked,
    ).model_dump())


@router.get("/date")
def get_date_availability(
    date: Optional[str] = None,
    flow: str = Query("customer", pattern=FLOW_PATTERN),
    reservations: List[ExistingReservation] = Depends(get_reservations)
):
    """单日状态；未给日期时返回 selection_required"""
    day = to_date(date)
    if date and day is None:
        raise ValidationError("日期格式错误，应为 YYYY-MM-DD", {"date": date})

    availability = availability_service.date_availability(
        day, reservations, lead_days=lead_days_for(flow))
    return create_success_response(DateAvailabilityResponse(
        date=day.isoformat() if day else "",
        flow=flow,
        availability=availability.value,
    ).model_dump())
