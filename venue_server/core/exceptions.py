"""
自定义异常类
提供更精确的错误处理和异常信息
"""

from typing import Any, Dict, List, Optional


class BaseApplicationError(Exception):
    """应用基础异常类"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class DatabaseError(BaseApplicationError):
    """数据库相关异常"""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, "DATABASE_ERROR", details)


class ValidationError(BaseApplicationError):
    """数据验证异常"""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class DraftValidationError(ValidationError):
    """预约草稿不完整或不可提交"""

    def __init__(self, problems: List[Dict[str, str]]):
        self.problems = problems
        message = "；".join(p["message"] for p in problems) or "预约信息不完整"
        super().__init__(message, {"problems": problems})
        self.error_code = "DRAFT_INVALID"


class CatalogError(BaseApplicationError):
    """目录数据加载异常"""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, "CATALOG_ERROR", details)


class BackendUnavailableError(BaseApplicationError):
    """预约后端网络/传输错误"""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(message, "BACKEND_UNAVAILABLE", details)


class ReservationRejectedError(BaseApplicationError):
    """预约后端拒绝了请求，消息原样转给用户"""

    def __init__(self, message: str, status_code: int, details: Dict[str, Any] = None):
        self.status_code = status_code
        super().__init__(message, "RESERVATION_REJECTED", details)


class ReservationNotFoundError(BaseApplicationError):
    """预约不存在"""

    def __init__(self, reservation_id: Optional[int] = None):
        super().__init__(
            f"预约不存在: {reservation_id}" if reservation_id is not None else "预约不存在",
            "RESERVATION_NOT_FOUND",
            {"reservation_id": reservation_id}
        )
