from __future__ import annotations

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from docreview.application import CatalogService
from docreview.core.schema import CacheClearRequest
from docreview.routes.deps import get_catalog

router = APIRouter(tags=["cache"])


@router.post("/cache/clear")
async def clear_cache(payload: dict | None = Body(default=None), catalog: CatalogService = Depends(get_catalog)) -> dict:
    """Invalidate the whole cache or every key starting with ``keyPrefix``."""
    try:
        request = CacheClearRequest.model_validate(payload or {})
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="keyPrefix must be a string") from exc
    catalog.clear_cache(request.key_prefix)
    return {"message": "Cache cleared", "clearedPrefix": request.key_prefix or "all"}


@router.get("/health")
async def health(catalog: CatalogService = Depends(get_catalog)) -> dict:
    return catalog.health()
