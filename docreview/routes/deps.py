from __future__ import annotations

from fastapi import Request

from docreview.application import CatalogService, PromotionService, ReviewSession


def get_catalog(request: Request) -> CatalogService:
    return request.app.state.catalog


def get_promotion(request: Request) -> PromotionService:
    return request.app.state.promotion


def get_session(request: Request) -> ReviewSession:
    return request.app.state.session
