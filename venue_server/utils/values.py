"""
数值与日期的宽松转换工具
目录数据异步到达且可能不完整，这里的函数遇到非法输入一律返回 None
"""

from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Optional[Decimal]:
    """转为Decimal，失败返回None（布尔值不算数字）"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not result.is_finite():
        return None
    return result


def to_int(value: Any) -> Optional[int]:
    """转为整数，只接受整数值（"2"、2.0 可以，"2.5"、"abc" 不行）"""
    number = to_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


def round_money(value: Decimal) -> Decimal:
    """金额四舍五入到两位小数"""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_date(value: Any) -> Optional[date]:
    """
    转为日期，只取日历日部分

    字符串形如 "2024-03-15"、"2024-03-15T00:00:00.000Z"、"2024-03-15 18:30:00+02:00"，
    时间和时区偏移一律忽略，避免跨时区时日期差一天。
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) < 10:
            return None
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def to_time(value: Any) -> Optional[time]:
    """转为时刻，接受 "11:00"、"11:00:00" 或 time 对象"""
    if isinstance(value, time):
        return value.replace(tzinfo=None, microsecond=0)
    if isinstance(value, str):
        try:
            return time.fromisoformat(value.strip()).replace(tzinfo=None, microsecond=0)
        except ValueError:
            return None
    return None
