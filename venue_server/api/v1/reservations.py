"""
预约路由模块
表单输入在此规范化后提交给外部预约后端
"""

from typing import List

from fastapi import APIRouter, Depends

from ...core.error_handler import create_success_response
from ...models.catalog import CatalogSnapshot, ExistingReservation
from ...schemas.reservation import (
    DraftResponse, ReservationDraftRequest, ReservationSubmitRequest
)
from ...services import submission_service
from ...services.reservation_service import ReservationService
from ..deps import get_catalog_snapshot, get_reservation_service, get_reservations

router = APIRouter()


def _form_input(req: ReservationSubmitRequest) -> dict:
    raw = req.to_input()
    raw.pop("flow", None)
    return raw


@router.post("/payload")
def preview_payload(
    req: ReservationDraftRequest,
    catalog: CatalogSnapshot = Depends(get_catalog_snapshot)
):
    """生成提交载荷，不写入后端"""
    payload = submission_service.build_payload(req.to_input(), catalog)
    return create_success_response(payload.to_api_dict())


@router.post("")
def create_reservation(
    req: ReservationSubmitRequest,
    catalog: CatalogSnapshot = Depends(get_catalog_snapshot),
    reservations: List[ExistingReservation] = Depends(get_reservations),
    service: ReservationService = Depends(get_reservation_service)
):
    """新建预约"""
    record = service.submit(_form_input(req), catalog, reservations, flow=req.flow)
    return create_success_response(record, "预约已提交")


@router.put("/{reservation_id}")
def update_reservation(
    reservation_id: int,
    req: ReservationSubmitRequest,
    catalog: CatalogSnapshot = Depends(get_catalog_snapshot),
    reservations: List[ExistingReservation] = Depends(get_reservations),
    service: ReservationService = Depends(get_reservation_service)
):
    """修改预约"""
    record = service.submit(_form_input(req), catalog, reservations,
                            flow=req.flow, reservation_id=reservation_id)
    return create_success_response(record, "预约已更新")


@router.get("/{reservation_id}/draft")
def get_reservation_draft(
    reservation_id: int,
    catalog: CatalogSnapshot = Depends(get_catalog_snapshot),
    service: ReservationService = Depends(get_reservation_service)
):
    """取回预约并回填为可编辑的草稿"""
    draft = service.load_draft(reservation_id, catalog)
    return create_success_response(DraftResponse.from_draft(draft).model_dump())
