"""
定价服务模块
根据预约草稿与目录快照计算价格，全部为纯函数

计价规则：
- 周一至周四按工作日价，周五至周日按周末价
- 周二在工作日价基础上加收固定附加费
- 餐食选项、背景板按选择时携带的价格计，缺失时按目录价
- 附加项按单价 × 数量累加
- 总价四舍五入到两位小数

任何缺失或非法输入只让对应项按 0 计，不抛异常：
目录数据异步到达，短时间内可能不完整。
"""

from decimal import Decimal
from typing import Any, Iterable, List, Optional

from ..config.settings import settings
from ..models.catalog import CatalogSnapshot, FoodOption, Mampara, Package
from ..models.reservation import (
    ExtraLine, PriceBreakdown, ReservationDraft, normalize_selection
)
from ..utils.values import round_money, to_date, to_decimal, to_int

ZERO = Decimal("0")

# 周一=0 ... 周日=6（date.weekday）
TUESDAY = 1
WEEKDAY_RATE_DAYS = frozenset({0, 1, 2, 3})


def surcharge_amount() -> Decimal:
    """当前配置的周二附加费"""
    return to_decimal(settings.tuesday_surcharge) or ZERO


def tuesday_surcharge(day: Any) -> Decimal:
    """日期为周二时返回附加费，否则为 0"""
    parsed = to_date(day)
    if parsed is None or parsed.weekday() != TUESDAY:
        return ZERO
    return surcharge_amount()


def base_package_price(package: Optional[Package], day: Any) -> Decimal:
    """不含周二附加费的套餐价"""
    parsed = to_date(day)
    if package is None or parsed is None:
        return ZERO
    if parsed.weekday() in WEEKDAY_RATE_DAYS:
        price = package.price_weekday
    else:
        price = package.price_weekend
    return price if price is not None else ZERO


def package_price(package: Optional[Package], day: Any) -> Decimal:
    """
    套餐价格

    Args:
        package: 套餐，缺失时返回 0
        day: 预约日期（date 或 ISO 字符串），缺失或非法时返回 0

    Returns:
        Decimal: 按星期选择的价格，周二另加附加费
    """
    if package is None or to_date(day) is None:
        return ZERO
    return base_package_price(package, day) + tuesday_surcharge(day)


def food_option_price(selection: Any, catalog: Optional[CatalogSnapshot] = None) -> Decimal:
    """餐食选项附加价：优先用选择值携带的价格，否则按id查目录"""
    option = normalize_selection(selection, FoodOption)
    if option is None:
        return ZERO
    if option.embedded is not None and option.embedded.extra_price is not None:
        return option.embedded.extra_price
    found = catalog.food_option(option.id) if catalog else None
    if found is None or found.extra_price is None:
        return ZERO
    return found.extra_price


def mampara_price(selection: Any, catalog: Optional[CatalogSnapshot] = None) -> Decimal:
    """背景板价格，解析方式同餐食选项"""
    mampara = normalize_selection(selection, Mampara)
    if mampara is None:
        return ZERO
    if mampara.embedded is not None and mampara.embedded.price is not None:
        return mampara.embedded.price
    found = catalog.mampara(mampara.id) if catalog else None
    if found is None or found.price is None:
        return ZERO
    return found.price


def _extra_entry(entry: Any):
    """读取附加项条目的 id 与数量（条目可以是模型或字典）"""
    if isinstance(entry, dict):
        return to_int(entry.get("id")), to_int(entry.get("quantity", entry.get("cantidad")))
    return to_int(getattr(entry, "id", None)), to_int(getattr(entry, "quantity", None))


def extras_lines(extras: Optional[Iterable[Any]],
                 catalog: Optional[CatalogSnapshot] = None) -> List[ExtraLine]:
    """附加项明细；目录里找不到或数量非法的条目不计入"""
    lines: List[ExtraLine] = []
    if not extras or catalog is None:
        return lines
    for entry in extras:
        extra_id, quantity = _extra_entry(entry)
        if extra_id is None or quantity is None or quantity <= 0:
            continue
        found = catalog.extra(extra_id)
        if found is None or found.price is None:
            continue
        lines.append(ExtraLine(
            id=extra_id,
            name=found.name,
            unit_price=found.price,
            quantity=quantity,
            subtotal=found.price * quantity
        ))
    return lines


def extras_total(extras: Optional[Iterable[Any]],
                 catalog: Optional[CatalogSnapshot] = None) -> Decimal:
    """附加项小计"""
    return sum((line.subtotal for line in extras_lines(extras, catalog)), ZERO)


def total(draft: Optional[ReservationDraft],
          catalog: Optional[CatalogSnapshot] = None) -> Decimal:
    """
    预约总价：套餐 + 餐食 + 背景板 + 附加项，四舍五入到两位小数

    只按规则计算，不看草稿上的手工金额。
    """
    return price_breakdown(draft, catalog).computed_total


def price_breakdown(draft: Optional[ReservationDraft],
                    catalog: Optional[CatalogSnapshot] = None) -> PriceBreakdown:
    """计算价格明细"""
    if draft is None:
        return PriceBreakdown()

    package = catalog.package(draft.package_id) if catalog and draft.package_id else None
    base = base_package_price(package, draft.date)
    fee = tuesday_surcharge(draft.date) if package is not None else ZERO
    food = food_option_price(draft.food_option, catalog)
    mampara = mampara_price(draft.mampara, catalog)
    lines = extras_lines(draft.extras, catalog)
    extras_sum = sum((line.subtotal for line in lines), ZERO)

    computed = round_money(base + fee + food + mampara + extras_sum)
    if draft.manual_total:
        final = round_money(to_decimal(draft.total) or ZERO)
    else:
        final = computed

    return PriceBreakdown(
        base_package_price=base,
        tuesday_fee=fee,
        package_price=base + fee,
        food_option_price=food,
        mampara_price=mampara,
        extras=lines,
        extras_total=extras_sum,
        computed_total=computed,
        total=final,
        manual_total=draft.manual_total
    )


class PricingService:
    """定价服务，绑定一个目录快照"""

    def __init__(self, catalog: CatalogSnapshot):
        self.catalog = catalog

    def quote(self, draft: ReservationDraft) -> PriceBreakdown:
        """报价"""
        return price_breakdown(draft, self.catalog)
