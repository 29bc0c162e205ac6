from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from docreview.application import PromotionService
from docreview.core.errors import InvalidInput, PromoteFailed
from docreview.core.schema import SaveJsonRequest
from docreview.routes.deps import get_promotion

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["results"])


@router.post("/save-json")
async def save_json(payload: dict | None = Body(default=None), promotion: PromotionService = Depends(get_promotion)) -> dict:
    """Create or overwrite a JSON file inside a result sub-folder."""
    try:
        request = SaveJsonRequest.model_validate(payload or {})
        outcome = await promotion.promote(request.json_file.to_item(), request.folder_name)
    except (ValidationError, InvalidInput) as exc:
        LOGGER.warning("[save-json] bad request body: %s", exc)
        raise HTTPException(
            status_code=400,
            detail="Invalid request: must include folderName, jsonFile.name, jsonFile.content",
        ) from exc
    except PromoteFailed as exc:
        LOGGER.error("[save-json] %s", exc)
        raise HTTPException(status_code=500, detail="Failed to save JSON file") from exc

    return {
        "message": "File saved successfully",
        "folderId": outcome.container_id,
        "fileId": outcome.file_id,
        "replaced": outcome.replaced > 0,
    }
