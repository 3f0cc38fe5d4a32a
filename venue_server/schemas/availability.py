"""
可用性相关的响应模式
"""

from pydantic import BaseModel, Field
from typing import List

from ..models.reservation import SlotWindow


class SlotOption(BaseModel):
    """时段下拉框选项"""
    slot: str
    start_time: str
    end_time: str
    label: str

    @classmethod
    def from_window(cls, window: SlotWindow) -> "SlotOption":
        return cls(
            slot=window.slot.value,
            start_time=window.start.strftime("%H:%M:%S"),
            end_time=window.end.strftime("%H:%M:%S"),
            label=window.label,
        )


class SlotsResponse(BaseModel):
    """某日时段占用情况"""
    date: str
    morning_booked: bool
    afternoon_booked: bool
    options: List[SlotOption] = Field(default_factory=list, description="仍可预约的时段")


class CalendarDay(BaseModel):
    date: str
    availability: str
    morning_booked: bool
    afternoon_booked: bool


class CalendarResponse(BaseModel):
    """整月日历"""
    month: str
    flow: str
    lead_days: int
    days: List[CalendarDay] = Field(default_factory=list)
    fully_booked: List[str] = Field(default_factory=list, description="两个时段都已约满的日期")


class DateAvailabilityResponse(BaseModel):
    date: str
    flow: str
    availability: str
