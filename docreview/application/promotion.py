"""Promotion of edited files into the results area."""
from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass

from docreview.core.cache import ObjectCache, index_key
from docreview.core.content import serialize
from docreview.core.errors import InvalidInput, PromoteFailed, ReviewError
from docreview.domain import EditableItem
from docreview.infrastructure import FOLDER_MIME_TYPE, JSON_MIME_TYPE, RemoteStoreAdapter, StoreQuery

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PromotionOutcome:
    container_id: str
    file_id: str
    created_container: bool = False
    replaced: int = 0


class PromotionService:
    """Upserts a file into a named result folder.

    The upsert is find-or-create the folder, delete any same-named file, then
    create the new one.  None of it is transactional: a failure after the delete
    leaves the slot empty and the whole promotion has to be retried.  Calls for
    the same folder name are serialized inside this process only; two processes
    racing on a new folder name can still create duplicate folders.
    """

    def __init__(self, adapter: RemoteStoreAdapter, cache: ObjectCache, *, results_root: str) -> None:
        self._adapter = adapter
        self._cache = cache
        self._results_root = results_root
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()

    @staticmethod
    def validate(item: EditableItem, container_name: str) -> None:
        if not container_name:
            raise InvalidInput("folderName is required")
        if not item.name:
            raise InvalidInput("jsonFile.name is required")
        if item.content is None:
            raise InvalidInput("jsonFile.content is required")

    async def _ensure_container(self, container_name: str) -> tuple[str, bool]:
        matches = await self._adapter.list_all(
            StoreQuery(self._results_root, mime_type=FOLDER_MIME_TYPE, name=container_name), "id"
        )
        if matches:
            return matches[0].id, False
        folder_id = await self._adapter.create_object(container_name, self._results_root, FOLDER_MIME_TYPE)
        LOGGER.info("Created result folder %s (%s)", container_name, folder_id)
        return folder_id, True

    async def _upsert(self, item: EditableItem, container_name: str, outcome: PromotionOutcome) -> None:
        outcome.container_id, outcome.created_container = await self._ensure_container(container_name)

        existing = await self._adapter.list_all(
            StoreQuery(outcome.container_id, mime_type=JSON_MIME_TYPE, name=item.name), "id,name"
        )
        for stale in existing:
            LOGGER.info("Replacing existing file %s in %s", item.name, container_name)
            await self._adapter.delete_object(stale.id)
            outcome.replaced += 1

        outcome.file_id = await self._adapter.create_object(
            item.name, outcome.container_id, JSON_MIME_TYPE, serialize(item.content)  # type: ignore[arg-type]
        )

    async def promote(self, item: EditableItem, container_name: str) -> PromotionOutcome:
        self.validate(item, container_name)
        if not self._results_root:
            raise PromoteFailed("RESULT_FOLDER_ID is not configured")

        lock = self._locks.get(container_name)
        if lock is None:
            lock = self._locks[container_name] = asyncio.Lock()
        self._lock_users[container_name] += 1
        outcome = PromotionOutcome(container_id="", file_id="")
        try:
            async with lock:
                await self._upsert(item, container_name, outcome)
        except ReviewError as exc:
            LOGGER.error("Promoting %s into %s failed: %s", item.name, container_name, exc)
            raise PromoteFailed(f"failed to save {item.name!r} into {container_name!r}: {exc}") from exc
        finally:
            self._lock_users[container_name] -= 1
            if not self._lock_users[container_name]:
                del self._lock_users[container_name]
                del self._locks[container_name]
            # a partial upsert still changed the results area
            if outcome.file_id or outcome.created_container or outcome.replaced:
                self._cache.invalidate(index_key("result"))
        return outcome


__all__ = ["PromotionOutcome", "PromotionService"]
