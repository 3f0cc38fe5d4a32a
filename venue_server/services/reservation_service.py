"""
预约提交服务
串起校验、载荷转换、后端写入与操作日志

流程：
- 表单输入 -> 草稿（统一规范化选择值）
- 按当前目录与已有预约校验，问题一次性返回
- 草稿 -> 扁平载荷，提交给预约后端
- 写操作日志；手工金额与计算金额不一致时一并记录
"""

from datetime import date
from typing import Any, Dict, List, Optional

from ..config.settings import settings
from ..core.database import DatabaseManager, db_manager
from ..core.exceptions import DraftValidationError, ReservationRejectedError
from ..models.catalog import CatalogSnapshot, ExistingReservation
from ..models.reservation import ReservationDraft, ReservationPayload
from . import pricing_service, submission_service
from .catalog_service import ReservationBackendClient
from .draft_service import validate_draft


def lead_days_for(flow: Optional[str]) -> int:
    """客户流程与管理后台的最少提前天数"""
    if flow == "admin":
        return settings.admin_lead_days
    return settings.customer_lead_days


class ReservationService:
    """预约提交服务"""

    def __init__(self, client: ReservationBackendClient,
                 db: Optional[DatabaseManager] = None):
        self.client = client
        self.db = db or db_manager

    def prepare(self, raw: Dict[str, Any], catalog: CatalogSnapshot,
                reservations: List[ExistingReservation],
                flow: str = "customer", today: Optional[date] = None,
                reservation_id: Optional[int] = None) -> ReservationPayload:
        """
        校验并生成载荷，不产生副作用

        Raises:
            DraftValidationError: 草稿不可提交时
        """
        draft = submission_service.draft_from_input(raw)
        if reservation_id is not None:
            draft.id = reservation_id
            # 编辑时自身占用的时段不算冲突
            reservations = [r for r in reservations if r.id != reservation_id]

        problems = validate_draft(draft, catalog, reservations,
                                  today or date.today(), lead_days_for(flow))
        if problems:
            raise DraftValidationError(problems)
        return submission_service.to_payload(draft, catalog)

    def submit(self, raw: Dict[str, Any], catalog: CatalogSnapshot,
               reservations: List[ExistingReservation],
               flow: str = "customer", today: Optional[date] = None,
               reservation_id: Optional[int] = None) -> Dict[str, Any]:
        """
        新建或修改预约

        Args:
            raw: 表单输入
            catalog: 目录快照
            reservations: 已有预约
            flow: customer 或 admin，决定提前天数
            today: 当前日期，默认取本机日期
            reservation_id: 修改时的预约id

        Returns:
            dict: 后端保存的预约记录
        """
        payload = self.prepare(raw, catalog, reservations, flow, today, reservation_id)
        action = "reservation_update" if reservation_id is not None else "reservation_create"

        try:
            if reservation_id is not None:
                record = self.client.update_reservation(reservation_id, payload)
            else:
                record = self.client.create_reservation(payload)
        except ReservationRejectedError as e:
            self.db.write_log("reservation_rejected", {
                "action": action,
                "status_code": e.status_code,
                "message": e.message,
            }, reservation_id)
            raise

        saved_id = record.get("id", reservation_id)
        self.db.write_log(action, {
            "date": payload.date,
            "start_time": payload.start_time,
            "total": payload.total,
            "flow": flow,
        }, saved_id)
        self._log_manual_total(raw, catalog, payload, saved_id)
        return record

    def _log_manual_total(self, raw: Dict[str, Any], catalog: CatalogSnapshot,
                          payload: ReservationPayload, reservation_id: Optional[int]):
        """手工金额与规则计算不一致时记录差异"""
        draft = submission_service.draft_from_input(raw)
        if not draft.manual_total:
            return
        breakdown = pricing_service.price_breakdown(draft, catalog)
        if breakdown.diverges:
            self.db.write_log("manual_total_override", {
                "computed_total": float(breakdown.computed_total),
                "submitted_total": payload.total,
            }, reservation_id)

    def load_draft(self, reservation_id: int,
                   catalog: CatalogSnapshot) -> ReservationDraft:
        """取回已保存的预约并回填为草稿"""
        record = self.client.get_reservation(reservation_id)
        return submission_service.from_record(record, catalog)
