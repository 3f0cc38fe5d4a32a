"""
预约相关的请求/响应模式
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from ..models.reservation import ReservationDraft


class ReservationDraftRequest(BaseModel):
    """
    预约表单输入

    选择值可以是裸id、下拉框对象 {"value", "label", "data"} 或目录对象，
    由服务端统一规范化。
    """
    id: Optional[int] = Field(None, description="预约ID，修改时使用")
    user_id: Optional[int] = Field(None, description="客户ID")
    package_id: Any = Field(None, description="套餐")
    date: Optional[str] = Field(None, description="预约日期 YYYY-MM-DD")
    time_slot: Any = Field(None, description="时段 morning/afternoon")
    food_option: Any = Field(None, description="餐食选项")
    theme: Any = Field(None, description="主题")
    mampara: Any = Field(None, description="背景板")
    extras: List[Any] = Field(default_factory=list, description="附加项 [{id, quantity}]")
    celebrant_name: str = Field("", description="寿星姓名")
    celebrant_age: Any = Field(None, description="寿星年龄")
    celebrant_gender: Optional[str] = Field(None, description="寿星性别")
    comments: str = Field("", description="备注")
    status: Optional[str] = Field(None, description="预约状态")
    active: bool = Field(True, description="是否有效")
    total: Any = Field(None, description="总价，仅手工金额时生效")
    manual_total: bool = Field(False, description="是否手工填写总价")

    model_config = {
        "json_schema_extra": {
            "example": {
                "package_id": 1,
                "date": "2025-06-12",
                "time_slot": "afternoon",
                "food_option": {"value": 3, "label": "Pizza", "data": {"extra_price": 800}},
                "theme": 2,
                "mampara": 5,
                "extras": [{"id": 1, "quantity": 2}],
                "celebrant_name": "Ana",
                "celebrant_age": 6
            }
        }
    }

    def to_input(self) -> Dict[str, Any]:
        return self.model_dump()


class ReservationSubmitRequest(ReservationDraftRequest):
    """预约提交请求"""
    flow: str = Field("customer", pattern="^(customer|admin)$",
                      description="customer 需提前7天，admin 不限制")


class ExtraItem(BaseModel):
    id: int
    quantity: int


class DraftResponse(BaseModel):
    """回填后的草稿"""
    id: Optional[int] = None
    user_id: Optional[int] = None
    package_id: Optional[int] = None
    date: Optional[str] = None
    time_slot: Optional[str] = None
    food_option_id: Optional[int] = None
    theme_id: Optional[int] = None
    mampara_id: Optional[int] = None
    extras: List[ExtraItem] = Field(default_factory=list)
    celebrant_name: str = ""
    celebrant_age: Optional[int] = None
    celebrant_gender: Optional[str] = None
    comments: str = ""
    status: str = "pending"
    active: bool = True
    total: float = 0.0
    manual_total: bool = False
    tuesday_fee: float = 0.0

    @classmethod
    def from_draft(cls, draft: ReservationDraft) -> "DraftResponse":
        return cls(
            id=draft.id,
            user_id=draft.user_id,
            package_id=draft.package_id,
            date=draft.date.isoformat() if draft.date else None,
            time_slot=draft.time_slot.value if draft.time_slot else None,
            food_option_id=draft.food_option_id,
            theme_id=draft.theme_id,
            mampara_id=draft.mampara_id,
            extras=[ExtraItem(id=e.id, quantity=e.quantity) for e in draft.extras],
            celebrant_name=draft.celebrant_name,
            celebrant_age=draft.celebrant_age,
            celebrant_gender=draft.celebrant_gender,
            comments=draft.comments,
            status=draft.status.value,
            active=draft.active,
            total=float(draft.total),
            manual_total=draft.manual_total,
            tuesday_fee=float(draft.tuesday_fee),
        )
