"""
报价相关的响应模式
金额统一以浮点数返回，已四舍五入到两位小数
"""

from pydantic import BaseModel, Field
from typing import List, Optional

from ..models.reservation import PriceBreakdown


class ExtraLineResponse(BaseModel):
    id: int
    name: Optional[str] = None
    unit_price: float
    quantity: int
    subtotal: float


class QuoteResponse(BaseModel):
    """报价明细"""
    base_package_price: float = Field(..., description="套餐价（不含周二附加费）")
    tuesday_fee: float = Field(..., description="周二附加费")
    package_price: float = Field(..., description="套餐价合计")
    food_option_price: float = Field(..., description="餐食选项价格")
    mampara_price: float = Field(..., description="背景板价格")
    extras: List[ExtraLineResponse] = Field(default_factory=list, description="附加项明细")
    extras_total: float = Field(..., description="附加项小计")
    computed_total: float = Field(..., description="按规则计算的总价")
    total: float = Field(..., description="最终总价（手工金额优先）")
    manual_total: bool = Field(False, description="是否手工金额")
    diverges: bool = Field(False, description="手工金额与计算金额不一致")

    @classmethod
    def from_breakdown(cls, breakdown: PriceBreakdown) -> "QuoteResponse":
        return cls(
            base_package_price=float(breakdown.base_package_price),
            tuesday_fee=float(breakdown.tuesday_fee),
            package_price=float(breakdown.package_price),
            food_option_price=float(breakdown.food_option_price),
            mampara_price=float(breakdown.mampara_price),
            extras=[
                ExtraLineResponse(
                    id=line.id,
                    name=line.name,
                    unit_price=float(line.unit_price),
                    quantity=line.quantity,
                    subtotal=float(line.subtotal),
                )
                for line in breakdown.extras
            ],
            extras_total=float(breakdown.extras_total),
            computed_total=float(breakdown.computed_total),
            total=float(breakdown.total),
            manual_total=breakdown.manual_total,
            diverges=breakdown.diverges,
        )
