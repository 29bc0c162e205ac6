"""Stateless access to the remote object store.

Wraps an :class:`ObjectStore` transport with paginated listing, byte
normalisation and translation of transport failures into the review error
taxonomy.  Nothing here retries.
"""
from __future__ import annotations

import json
from typing import Any

from docreview.core.errors import FetchFailed, StoreUnavailable
from docreview.domain import RemoteListing

from .store import MAX_PAGE_SIZE, ObjectStore, StoreQuery, StoreRequestError

LISTING_FIELDS = "id,name,modifiedTime"


def normalize_bytes(data: Any) -> bytes:
    """Coerce whatever the transport returned into raw bytes."""

    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, (dict, list)):
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return str(data).encode("utf-8")


class RemoteStoreAdapter:
    def __init__(self, store: ObjectStore, *, page_size: int = MAX_PAGE_SIZE) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._store = store
        self._page_size = min(page_size, MAX_PAGE_SIZE)

    @property
    def store(self) -> ObjectStore:
        return self._store

    async def list_all(self, query: StoreQuery, fields: str = LISTING_FIELDS) -> list[RemoteListing]:
        """Follow continuation tokens until the store reports no further page.

        Any failing page fails the whole listing with :class:`StoreUnavailable`.
        """

        listings: list[RemoteListing] = []
        page_token: str | None = None
        while True:
            try:
                page = await self._store.list_page(
                    query, fields, page_size=self._page_size, page_token=page_token
                )
                listings.extend(RemoteListing.from_payload(item) for item in page.files)
            except (StoreRequestError, KeyError, TypeError, ValueError) as exc:
                raise StoreUnavailable(f"listing {query.render()!r} failed: {exc}") from exc
            page_token = page.next_page_token
            if not page_token:
                return listings

    async def fetch_bytes(self, file_id: str) -> bytes:
        try:
            data = await self._store.get_media(file_id)
        except StoreRequestError as exc:
            raise FetchFailed(f"fetching {file_id} failed: {exc}") from exc
        if data is None:
            raise FetchFailed(f"object {file_id} has no content")
        return normalize_bytes(data)

    async def fetch_name(self, file_id: str) -> str:
        try:
            metadata = await self._store.get_metadata(file_id, "name")
        except StoreRequestError as exc:
            raise FetchFailed(f"reading metadata of {file_id} failed: {exc}") from exc
        name = metadata.get("name")
        if not name:
            raise FetchFailed(f"object {file_id} has no name")
        return str(name)

    async def create_object(
        self,
        name: str,
        parent_id: str,
        mime_type: str,
        body: str | bytes | None = None,
    ) -> str:
        try:
            return await self._store.create(name, parent_id, mime_type, body)
        except StoreRequestError as exc:
            raise StoreUnavailable(f"creating {name!r} failed: {exc}") from exc

    async def delete_object(self, file_id: str) -> None:
        try:
            await self._store.delete(file_id)
        except StoreRequestError as exc:
            raise StoreUnavailable(f"deleting {file_id} failed: {exc}") from exc


__all__ = ["LISTING_FIELDS", "RemoteStoreAdapter", "normalize_bytes"]
