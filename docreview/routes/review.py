from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from docreview.application import ReviewSession
from docreview.core.content import to_json_value
from docreview.core.errors import ParseFailed, ReviewError
from docreview.core.schema import EditItemRequest, RefreshRequest
from docreview.routes.deps import get_session

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/review", tags=["review"])


@router.get("")
async def get_review(session: ReviewSession = Depends(get_session)) -> dict:
    if session.refreshed_at is None and session.error is None:
        await session.refresh()
    return session.snapshot()


@router.post("/refresh")
async def refresh_review(payload: dict | None = Body(default=None), session: ReviewSession = Depends(get_session)) -> dict:
    try:
        request = RefreshRequest.model_validate(payload or {})
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="force must be a boolean") from exc
    await session.refresh(force=request.force)
    return session.snapshot()


@router.get("/documents/{doc_id}/content")
async def get_document_content(doc_id: str, session: ReviewSession = Depends(get_session)) -> dict:
    try:
        content = await session.document_content(doc_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="document not found") from exc
    except ReviewError as exc:
        LOGGER.error("Loading document %s failed: %s", doc_id, exc)
        raise HTTPException(status_code=500, detail="Failed to fetch file content") from exc
    return {"id": doc_id, "content": content}


@router.get("/items/{item_id}/content")
async def get_item_content(item_id: str, session: ReviewSession = Depends(get_session)) -> dict:
    try:
        content = await session.item_content(item_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="item not found") from exc
    except ParseFailed as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ReviewError as exc:
        LOGGER.error("Loading item %s failed: %s", item_id, exc)
        raise HTTPException(status_code=500, detail="Failed to fetch file content") from exc
    return {"id": item_id, "content": to_json_value(content)}


@router.put("/items/{item_id}")
async def edit_item(item_id: str, payload: dict | None = Body(default=None), session: ReviewSession = Depends(get_session)) -> dict:
    if not payload or "content" not in payload:
        raise HTTPException(status_code=400, detail="content is required")
    request = EditItemRequest.model_validate(payload)
    try:
        item = session.edit_item(item_id, request.content)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="item not found") from exc
    return item.to_payload()


@router.post("/items/{item_id}/approve")
async def approve_item(item_id: str, session: ReviewSession = Depends(get_session)) -> dict:
    try:
        outcome = await session.approve_item(item_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="item not found") from exc
    except ReviewError as exc:
        LOGGER.error("Approving %s failed: %s", item_id, exc)
        raise HTTPException(status_code=500, detail="Failed to save file to results folder") from exc
    snapshot = session.snapshot()
    snapshot["promoted"] = {"folderId": outcome.container_id, "fileId": outcome.file_id}
    return snapshot
