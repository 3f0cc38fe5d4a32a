"""
API routes and endpoints.
"""

from fastapi import APIRouter
from ..schemas.common import ErrorResponse
from .v1 import availability, catalog, logs, pricing, reservations

api_router = APIRouter(responses={
    400: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
})

# 包含所有v1路由
api_router.include_router(pricing.router, prefix="/pricing", tags=["报价"])
api_router.include_router(availability.router, prefix="/availability", tags=["可用性"])
api_router.include_router(catalog.router, prefix="/catalog", tags=["目录"])
api_router.include_router(reservations.router, prefix="/reservations", tags=["预约"])
api_router.include_router(logs.router, prefix="", tags=["日志"])
