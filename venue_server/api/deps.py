"""
路由依赖
目录、已有预约、后端客户端与日志库都通过依赖注入，测试中可整体替换
"""

from typing import List

from fastapi import Depends

from ..core.database import DatabaseManager, db_manager
from ..models.catalog import CatalogSnapshot, ExistingReservation
from ..services.catalog_service import CatalogService, ReservationBackendClient, catalog_service
from ..services.reservation_service import ReservationService


def get_db() -> DatabaseManager:
    return db_manager


def get_catalog_service() -> CatalogService:
    return catalog_service


def get_backend_client(
    service: CatalogService = Depends(get_catalog_service)
) -> ReservationBackendClient:
    return service.client


def get_catalog_snapshot(
    service: CatalogService = Depends(get_catalog_service)
) -> CatalogSnapshot:
    return service.get_snapshot()


def get_reservations(
    client: ReservationBackendClient = Depends(get_backend_client)
) -> List[ExistingReservation]:
    """已有预约每次请求重新拉取"""
    return client.fetch_reservations()


def get_reservation_service(
    client: ReservationBackendClient = Depends(get_backend_client),
    db: DatabaseManager = Depends(get_db)
) -> ReservationService:
    return ReservationService(client, db)
