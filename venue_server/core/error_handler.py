"""
统一错误处理模块
异常统一转为 {success, error_code, message, details} 响应

- 错误码映射HTTP状态码
- 后端拒绝时状态码与消息原样透传
- 未知异常写入操作日志
"""

import traceback
from typing import Dict, Any, Optional
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from .exceptions import BaseApplicationError, ReservationRejectedError
from . import database
from ..schemas.common import ErrorResponse

# 错误代码到HTTP状态码的映射
ERROR_CODE_STATUS_MAP = {
    "VALIDATION_ERROR": 400,
    "DRAFT_INVALID": 422,
    "RESERVATION_NOT_FOUND": 404,
    "CATALOG_ERROR": 502,
    "BACKEND_UNAVAILABLE": 503,
    "DATABASE_ERROR": 500,
    "INTERNAL_ERROR": 500,
}


def error_response(http_status: int, error_code: str, message: str,
                   details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    """按统一格式生成错误响应"""
    body = ErrorResponse(error_code=error_code, message=message, details=details or {})
    return JSONResponse(status_code=http_status, content=body.model_dump())


def _log_system_error(error_details: Dict[str, Any]):
    """记录系统错误到操作日志"""
    try:
        database.db_manager.write_log("system_error", error_details)
    except Exception:
        # 日志库不可用时只能打印到控制台
        print(f"Failed to log error to database: {error_details}")


async def application_error_handler(request: Request, exc: BaseApplicationError) -> JSONResponse:
    """应用业务异常"""
    if isinstance(exc, ReservationRejectedError):
        http_status = exc.status_code
    else:
        http_status = ERROR_CODE_STATUS_MAP.get(exc.error_code, 400)
    return error_response(http_status, exc.error_code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return error_response(exc.status_code, "HTTP_ERROR", str(exc.detail),
                          {"status_code": exc.status_code})


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """请求参数校验失败"""
    return error_response(422, "VALIDATION_ERROR", "请求参数验证失败",
                          {"validation_errors": str(exc)})


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """未知异常：记录日志后返回 500"""
    _log_system_error({
        "type": type(exc).__name__,
        "message": str(exc),
        "traceback": traceback.format_exc()
    })
    return error_response(500, "INTERNAL_ERROR", str(exc) or "系统内部错误",
                          {"error_type": type(exc).__name__})


def create_success_response(data: Any = None, message: str = "操作成功") -> Dict[str, Any]:
    """创建标准成功响应"""
    response = {
        "success": True,
        "message": message
    }

    if data is not None:
        response["data"] = data

    return response
