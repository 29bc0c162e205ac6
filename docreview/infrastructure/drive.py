"""Integration with the Google Drive v3 REST API."""
from __future__ import annotations

import json
import uuid
from typing import Any
from urllib.parse import urlparse

import httpx

from .auth import StaticToken, TokenSource
from .store import MAX_PAGE_SIZE, StorePage, StoreQuery, StoreRequestError


class DriveClient:
    """Async client for the subset of Drive v3 used by the review backend."""

    def __init__(
        self,
        auth: TokenSource | str,
        *,
        api_base: str = "https://www.googleapis.com",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = urlparse(api_base)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("api_base must include scheme and host")

        base = f"{parsed.scheme}://{parsed.netloc}{parsed.path.rstrip('/')}"
        self._files_url = f"{base}/drive/v3/files"
        self._upload_url = f"{base}/upload/drive/v3/files"
        self._auth: TokenSource = StaticToken(auth) if isinstance(auth, str) else auth
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        token = await self._auth.token()
        headers = {"Authorization": f"Bearer {token}", **kwargs.pop("headers", {})}
        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise StoreRequestError(f"{method} {url} failed: {exc}") from exc
        if response.is_error:
            raise StoreRequestError(
                f"{method} {url} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _multipart_body(metadata: dict[str, Any], media: bytes, mime_type: str) -> tuple[bytes, str]:
        """Build a ``multipart/related`` upload body (metadata part, then media part)."""

        boundary = uuid.uuid4().hex
        head = (
            f"--{boundary}\r\n"
            "Content-Type: application/json; charset=UTF-8\r\n\r\n"
            f"{json.dumps(metadata)}\r\n"
            f"--{boundary}\r\n"
            f"Content-Type: {mime_type}\r\n\r\n"
        ).encode("utf-8")
        tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
        return head + media + tail, f"multipart/related; boundary={boundary}"

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def list_page(
        self,
        query: StoreQuery,
        fields: str,
        *,
        page_size: int = MAX_PAGE_SIZE,
        page_token: str | None = None,
    ) -> StorePage:
        params: dict[str, Any] = {
            "q": query.render(),
            "fields": f"nextPageToken, files({fields})",
            "pageSize": min(page_size, MAX_PAGE_SIZE),
        }
        if page_token:
            params["pageToken"] = page_token
        response = await self._request("GET", self._files_url, params=params)
        data = response.json()
        return StorePage(files=list(data.get("files") or []), next_page_token=data.get("nextPageToken"))

    async def get_media(self, file_id: str) -> bytes:
        response = await self._request("GET", f"{self._files_url}/{file_id}", params={"alt": "media"})
        return response.content

    async def get_metadata(self, file_id: str, fields: str = "id,name") -> dict[str, Any]:
        response = await self._request("GET", f"{self._files_url}/{file_id}", params={"fields": fields})
        return response.json()

    async def create(
        self,
        name: str,
        parent_id: str,
        mime_type: str,
        body: str | bytes | None = None,
    ) -> str:
        metadata = {"name": name, "parents": [parent_id], "mimeType": mime_type}
        if body is None:
            response = await self._request("POST", self._files_url, params={"fields": "id"}, json=metadata)
        else:
            media = body.encode("utf-8") if isinstance(body, str) else body
            content, content_type = self._multipart_body(metadata, media, mime_type)
            response = await self._request(
                "POST",
                self._upload_url,
                params={"uploadType": "multipart", "fields": "id"},
                content=content,
                headers={"Content-Type": content_type},
            )
        return str(response.json()["id"])

    async def delete(self, file_id: str) -> None:
        await self._request("DELETE", f"{self._files_url}/{file_id}")

    async def close(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            await self._client.aclose()


__all__ = ["DriveClient"]
