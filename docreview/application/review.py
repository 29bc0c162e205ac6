"""In-process review session: edits, approvals and the reconciled view."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from docreview.core.content import ItemContent, from_value, parse_structured
from docreview.core.errors import ReviewError
from docreview.core.reconcile import ReconciliationResult, reconcile
from docreview.domain import ContainerListing, EditableContainer, EditableItem, RemoteListing, ResultContainer, SourceDocument

from .catalog import CatalogService
from .promotion import PromotionOutcome, PromotionService

LOGGER = logging.getLogger(__name__)

Listings = tuple[tuple[RemoteListing, ...], tuple[ContainerListing, ...], tuple[ResultContainer, ...]]


class ReviewSession:
    """Keeps the reviewer's state between requests.

    Nothing here is persisted: edited/approved flags and lazily loaded content
    live for the lifetime of the process.  Each pass rebuilds documents and
    folders from the last listings and hands them to :func:`reconcile`.
    """

    def __init__(self, catalog: CatalogService, promotion: PromotionService) -> None:
        self._catalog = catalog
        self._promotion = promotion
        self._lock = asyncio.Lock()
        self._listings: Listings | None = None
        self._items: dict[str, EditableItem] = {}
        self._document_content: dict[str, str] = {}
        self._view = ReconciliationResult()
        self.error: str | None = None
        self.refreshed_at: datetime | None = None

    # ------------------------------------------------------------------
    # reconciliation
    # ------------------------------------------------------------------
    def _session_item(self, listing: RemoteListing, container_id: str) -> EditableItem:
        item = self._items.get(listing.id)
        if item is None or item.container_id != container_id:
            return EditableItem(id=listing.id, name=listing.name, container_id=container_id)
        item.name = listing.name
        return item

    def _reconcile(self) -> ReconciliationResult:
        if self._listings is None:
            return self._view
        documents, folders, results = self._listings

        containers = [
            EditableContainer(
                id=folder.id,
                name=folder.name,
                files=[self._session_item(listing, folder.id) for listing in folder.files],
            )
            for folder in folders
        ]
        # items no longer listed are discarded together with their flags
        self._items = {item.id: item for folder in containers for item in folder.files}

        sources = [
            SourceDocument(id=doc.id, name=doc.name, content=self._document_content.get(doc.id))
            for doc in documents
        ]
        self._view = reconcile(sources, containers, results)
        return self._view

    async def refresh(self, *, force: bool = False) -> ReconciliationResult:
        """Re-list the three collections and reconcile.

        On failure the previous view is kept and :attr:`error` is set.
        """

        async with self._lock:
            if force:
                self._catalog.clear_listings()
            try:
                listings = await asyncio.gather(
                    self._catalog.list_documents(),
                    self._catalog.list_containers(),
                    self._catalog.list_results(),
                )
            except ReviewError as exc:
                LOGGER.error("Refresh failed, keeping last view: %s", exc)
                self.error = f"Failed to load files: {exc}"
                return self._view

            self._listings = (listings[0], listings[1], listings[2])
            self.error = None
            self.refreshed_at = datetime.now(timezone.utc)
            return self._reconcile()

    @property
    def view(self) -> ReconciliationResult:
        return self._view

    def snapshot(self) -> dict[str, Any]:
        return {
            "documents": [doc.to_payload() for doc in self._view.documents],
            "containers": [folder.to_payload() for folder in self._view.containers],
            "ambiguousKeys": list(self._view.ambiguous_keys),
            "error": self.error,
            "refreshedAt": self.refreshed_at.isoformat() if self.refreshed_at else None,
        }

    # ------------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------------
    def find_item(self, item_id: str) -> EditableItem:
        item = self._items.get(item_id)
        if item is None:
            raise KeyError(item_id)
        return item

    def find_document(self, doc_id: str) -> SourceDocument:
        document = self._view.document(doc_id)
        if document is None:
            raise KeyError(doc_id)
        return document

    # ------------------------------------------------------------------
    # content
    # ------------------------------------------------------------------
    async def document_content(self, doc_id: str) -> str:
        document = self.find_document(doc_id)
        if document.content is None:
            document.content = await self._catalog.read_text(doc_id)
            self._document_content[doc_id] = document.content
        return document.content

    async def item_content(self, item_id: str) -> ItemContent:
        item = self.find_item(item_id)
        if item.content is None:
            item.content = parse_structured(await self._catalog.read_bytes(item_id))
        return item.content

    # ------------------------------------------------------------------
    # edits
    # ------------------------------------------------------------------
    def edit_item(self, item_id: str, value: Any) -> EditableItem:
        item = self.find_item(item_id)
        item.content = from_value(value)
        item.mark_edited()
        self._reconcile()
        return item

    async def approve_item(self, item_id: str) -> PromotionOutcome:
        """Promote an item into the result folder named after its data folder."""

        item = self.find_item(item_id)
        folder = self._view.container(item.container_id)
        if folder is None:
            raise KeyError(item.container_id)
        if item.content is None:
            await self.item_content(item_id)

        outcome = await self._promotion.promote(item, folder.name)
        item.mark_approved()
        await self.refresh()
        return outcome


__all__ = ["ReviewSession"]
