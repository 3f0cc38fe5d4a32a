"""
报价路由模块
"""

from fastapi import APIRouter, Depends

from ...core.database import DatabaseManager
from ...core.error_handler import create_success_response
from ...models.catalog import CatalogSnapshot
from ...schemas.pricing import QuoteResponse
from ...schemas.reservation import ReservationDraftRequest
from ...services import pricing_service, submission_service
from ..deps import get_catalog_snapshot, get_db

router = APIRouter()


@router.post("/quote")
def quote(
    req: ReservationDraftRequest,
    catalog: CatalogSnapshot = Depends(get_catalog_snapshot),
    db: DatabaseManager = Depends(get_db)
):
    """按当前目录计算价格明细"""
    draft = submission_service.draft_from_input(req.to_input())
    breakdown = pricing_service.price_breakdown(draft, catalog)

    if breakdown.diverges:
        db.write_log("manual_total_quote", {
            "computed_total": float(breakdown.computed_total),
            "submitted_total": float(breakdown.total),
        }, draft.id)

    return create_success_response(QuoteResponse.from_breakdown(breakdown).model_dump())
