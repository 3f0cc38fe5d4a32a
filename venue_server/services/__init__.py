"""
Business logic services.
Contains service layer implementations for pricing, availability and submission.
"""

from .catalog_service import CatalogService, ReservationBackendClient, catalog_service
from .draft_service import DraftState, ReservationDraftSession
from .pricing_service import PricingService
from .reservation_service import ReservationService

__all__ = [
    "CatalogService",
    "DraftState",
    "PricingService",
    "ReservationBackendClient",
    "ReservationDraftSession",
    "ReservationService",
    "catalog_service"
]
