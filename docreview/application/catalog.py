"""Cached listings and downloads backing the collaborator-facing API."""
from __future__ import annotations

import asyncio
import logging

from docreview.core.cache import ObjectCache, file_key, index_key
from docreview.core.errors import StoreUnavailable
from docreview.domain import ContainerListing, RemoteListing, ResultContainer
from docreview.infrastructure import FOLDER_MIME_TYPE, JSON_MIME_TYPE, LISTING_FIELDS, RemoteStoreAdapter, StoreQuery

LOGGER = logging.getLogger(__name__)

MARKDOWN_INDEX = index_key("markdown")
JSON_INDEX = index_key("json")
RESULT_INDEX = index_key("result")
LISTING_KEYS = (MARKDOWN_INDEX, JSON_INDEX, RESULT_INDEX)


class CatalogService:
    """Lists the three collections and serves object bytes through the cache."""

    def __init__(
        self,
        adapter: RemoteStoreAdapter,
        cache: ObjectCache,
        *,
        markdown_root: str,
        json_root: str,
        result_root: str,
    ) -> None:
        self._adapter = adapter
        self._cache = cache
        self._markdown_root = markdown_root
        self._json_root = json_root
        self._result_root = result_root

    @property
    def cache(self) -> ObjectCache:
        return self._cache

    @property
    def adapter(self) -> RemoteStoreAdapter:
        return self._adapter

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _require_root(root: str, variable: str) -> str:
        if not root:
            raise StoreUnavailable(f"{variable} is not configured")
        return root

    async def _list_folders(self, root: str) -> list[tuple[RemoteListing, tuple[RemoteListing, ...]]]:
        folders = await self._adapter.list_all(StoreQuery(root, mime_type=FOLDER_MIME_TYPE), "id,name")
        contents = await asyncio.gather(
            *(self._adapter.list_all(StoreQuery(folder.id, mime_type=JSON_MIME_TYPE), LISTING_FIELDS) for folder in folders)
        )
        return [(folder, tuple(files)) for folder, files in zip(folders, contents)]

    # ------------------------------------------------------------------
    # listings
    # ------------------------------------------------------------------
    async def list_documents(self) -> tuple[RemoteListing, ...]:
        root = self._require_root(self._markdown_root, "MARKDOWN_FOLDER_ID")

        async def load() -> tuple[RemoteListing, ...]:
            return tuple(await self._adapter.list_all(StoreQuery(root), LISTING_FIELDS))

        return await self._cache.load(MARKDOWN_INDEX, load, gated=False)

    async def list_containers(self) -> tuple[ContainerListing, ...]:
        root = self._require_root(self._json_root, "JSON_FOLDER_ID")

        async def load() -> tuple[ContainerListing, ...]:
            return tuple(
                ContainerListing(id=folder.id, name=folder.name, files=files)
                for folder, files in await self._list_folders(root)
            )

        return await self._cache.load(JSON_INDEX, load, gated=False)

    async def list_results(self) -> tuple[ResultContainer, ...]:
        root = self._require_root(self._result_root, "RESULT_FOLDER_ID")

        async def load() -> tuple[ResultContainer, ...]:
            return tuple(
                ResultContainer(container_id=folder.id, container_name=folder.name, files=files)
                for folder, files in await self._list_folders(root)
            )

        return await self._cache.load(RESULT_INDEX, load, gated=False)

    # ------------------------------------------------------------------
    # objects
    # ------------------------------------------------------------------
    async def read_bytes(self, file_id: str) -> bytes:
        return await self._cache.load(file_key(file_id), lambda: self._adapter.fetch_bytes(file_id))

    async def read_text(self, file_id: str) -> str:
        data = await self.read_bytes(file_id)
        return data.decode("utf-8", errors="replace")

    async def download(self, file_id: str) -> tuple[str, bytes]:
        name = await self._adapter.fetch_name(file_id)
        return name, await self.read_bytes(file_id)

    # ------------------------------------------------------------------
    # cache maintenance
    # ------------------------------------------------------------------
    def clear_cache(self, prefix: str = "") -> int:
        removed = self._cache.invalidate(prefix)
        LOGGER.info("Cleared %d cache entries (prefix=%r)", removed, prefix or "all")
        return removed

    def clear_listings(self) -> None:
        for key in LISTING_KEYS:
            self._cache.invalidate(key)

    def health(self) -> dict[str, object]:
        return {"status": "OK", "cachedKeys": len(self._cache)}


__all__ = ["CatalogService", "JSON_INDEX", "LISTING_KEYS", "MARKDOWN_INDEX", "RESULT_INDEX"]
