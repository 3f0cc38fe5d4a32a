from typing import Optional, Any, Dict, List
from pydantic import BaseModel, Field

class ErrorResponse(BaseModel):
    """错误响应格式"""
    success: bool = Field(False, description="请求失败")
    message: str = Field(description="错误消息")
    error_code: str = Field(description="错误码")
    details: Dict[str, Any] = Field(default_factory=dict, description="错误详情")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "message": "请选择套餐；请选择时段",
                "error_code": "DRAFT_INVALID",
                "details": {"problems": [
                    {"field": "package_id", "message": "请选择套餐"},
                    {"field": "time_slot", "message": "请选择时段"}
                ]}
            }
        }
    }

class LogEntry(BaseModel):
    """操作日志条目"""
    log_id: int
    reservation_id: Optional[int] = None
    action: str
    detail: Any = None
    created_at: Optional[str] = None

class LogPage(BaseModel):
    """日志分页"""
    logs: List[LogEntry] = Field(default_factory=list)
    total: int = Field(0, description="总记录数")
    page: int = Field(1, description="页码")
    size: int = Field(20, description="每页数量")
    pages: int = Field(0, description="总页数")
