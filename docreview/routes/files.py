from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from docreview.application import CatalogService
from docreview.core.errors import ReviewError
from docreview.routes.deps import get_catalog

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["files"])


def _failure(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=500)


@router.get("/markdown-files")
async def list_markdown_files(catalog: CatalogService = Depends(get_catalog)):
    try:
        documents = await catalog.list_documents()
    except ReviewError:
        LOGGER.exception("Listing markdown files failed")
        return _failure("Failed to list markdown files")
    return [doc.to_payload() for doc in documents]


@router.get("/json-folders")
async def list_json_folders(catalog: CatalogService = Depends(get_catalog)):
    try:
        folders = await catalog.list_containers()
    except ReviewError:
        LOGGER.exception("Listing JSON folders failed")
        return _failure("Failed to list JSON folders")
    return [folder.to_payload() for folder in folders]


@router.get("/result-files")
async def list_result_files(catalog: CatalogService = Depends(get_catalog)):
    try:
        results = await catalog.list_results()
    except ReviewError:
        LOGGER.exception("Listing result folders failed")
        return _failure("Failed to fetch result folder files")
    return [result.to_payload() for result in results]


@router.get("/files/{file_id}/content")
async def get_file_content(file_id: str, catalog: CatalogService = Depends(get_catalog)) -> Response:
    try:
        text = await catalog.read_text(file_id)
    except ReviewError:
        LOGGER.exception("Fetching content of %s failed", file_id)
        return _failure("Failed to fetch file content")
    return PlainTextResponse(text)


@router.get("/files/{file_id}/download")
async def download_file(file_id: str, catalog: CatalogService = Depends(get_catalog)) -> Response:
    """Serve an object as an attachment, filling the byte cache on the way."""
    try:
        name, data = await catalog.download(file_id)
    except ReviewError:
        LOGGER.exception("Download of %s failed", file_id)
        return _failure("Download failed")
    fallback = name.encode("ascii", "replace").decode("ascii").replace('"', "")
    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(name)}",
            "Cache-Control": f"public, max-age={int(catalog.cache.ttl_seconds)}",
        },
    )
