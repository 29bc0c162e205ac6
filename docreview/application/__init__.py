"""Application services."""

from .catalog import CatalogService
from .promotion import PromotionOutcome, PromotionService
from .review import ReviewSession

__all__ = [
    "CatalogService",
    "PromotionOutcome",
    "PromotionService",
    "ReviewSession",
]
