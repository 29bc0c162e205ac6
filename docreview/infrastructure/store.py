"""Remote object store contract and an in-memory implementation."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
JSON_MIME_TYPE = "application/json"
MAX_PAGE_SIZE = 1000


class StoreRequestError(RuntimeError):
    """Raised when the remote store rejects or fails a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class StoreQuery:
    """Filter for children of one folder."""

    parent_id: str
    mime_type: str | None = None
    name: str | None = None
    include_trashed: bool = False

    @staticmethod
    def quote(value: str) -> str:
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"

    def render(self) -> str:
        """Render the Drive ``q`` expression for this filter."""

        clauses = [f"{self.quote(self.parent_id)} in parents"]
        if self.name is not None:
            clauses.append(f"name={self.quote(self.name)}")
        if self.mime_type is not None:
            clauses.append(f"mimeType={self.quote(self.mime_type)}")
        if not self.include_trashed:
            clauses.append("trashed=false")
        return " and ".join(clauses)


@dataclass(slots=True)
class StorePage:
    files: list[dict[str, Any]] = field(default_factory=list)
    next_page_token: str | None = None


class ObjectStore(Protocol):
    """Transport contract consumed by :class:`~docreview.infrastructure.adapter.RemoteStoreAdapter`."""

    async def list_page(
        self,
        query: StoreQuery,
        fields: str,
        *,
        page_size: int = MAX_PAGE_SIZE,
        page_token: str | None = None,
    ) -> StorePage: ...

    async def get_media(self, file_id: str) -> Any: ...

    async def get_metadata(self, file_id: str, fields: str = "id,name") -> dict[str, Any]: ...

    async def create(
        self,
        name: str,
        parent_id: str,
        mime_type: str,
        body: str | bytes | None = None,
    ) -> str: ...

    async def delete(self, file_id: str) -> None: ...

    async def close(self) -> None: ...


@dataclass(slots=True)
class StoredObject:
    id: str
    name: str
    parent_id: str
    mime_type: str
    body: Any = None
    modified_time: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    trashed: bool = False

    def project(self, fields: str) -> dict[str, Any]:
        values = {
            "id": self.id,
            "name": self.name,
            "mimeType": self.mime_type,
            "modifiedTime": self.modified_time,
            "parents": [self.parent_id],
        }
        wanted = [part.strip() for part in fields.split(",") if part.strip()]
        return {key: values[key] for key in wanted if key in values}


class InMemoryObjectStore:
    """Simple in-memory store for local runs and tests.

    ``calls`` counts requests per operation so callers can assert on round trips.
    """

    def __init__(self) -> None:
        self._objects: dict[str, StoredObject] = {}
        self._counter = 0
        self.calls: Counter[str] = Counter()

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _next_id(self) -> str:
        self._counter += 1
        return f"obj-{self._counter:05d}"

    def _require(self, file_id: str) -> StoredObject:
        stored = self._objects.get(file_id)
        if stored is None or stored.trashed:
            raise StoreRequestError(f"File not found: {file_id}", status_code=404)
        return stored

    @staticmethod
    def _matches(stored: StoredObject, query: StoreQuery) -> bool:
        if stored.parent_id != query.parent_id:
            return False
        if stored.trashed and not query.include_trashed:
            return False
        if query.mime_type is not None and stored.mime_type != query.mime_type:
            return False
        return query.name is None or stored.name == query.name

    # ------------------------------------------------------------------
    # seeding
    # ------------------------------------------------------------------
    def add(
        self,
        name: str,
        parent_id: str,
        mime_type: str = JSON_MIME_TYPE,
        body: Any = None,
        *,
        object_id: str | None = None,
    ) -> str:
        file_id = object_id or self._next_id()
        self._objects[file_id] = StoredObject(
            id=file_id, name=name, parent_id=parent_id, mime_type=mime_type, body=body
        )
        return file_id

    def add_folder(self, name: str, parent_id: str, *, object_id: str | None = None) -> str:
        return self.add(name, parent_id, FOLDER_MIME_TYPE, object_id=object_id)

    def children(self, parent_id: str, name: str | None = None) -> list[StoredObject]:
        query = StoreQuery(parent_id=parent_id, name=name)
        return [stored for stored in self._objects.values() if self._matches(stored, query)]

    def get(self, file_id: str) -> StoredObject | None:
        return self._objects.get(file_id)

    # ------------------------------------------------------------------
    # ObjectStore
    # ------------------------------------------------------------------
    async def list_page(
        self,
        query: StoreQuery,
        fields: str,
        *,
        page_size: int = MAX_PAGE_SIZE,
        page_token: str | None = None,
    ) -> StorePage:
        self.calls["list_page"] += 1
        matches = [stored for stored in self._objects.values() if self._matches(stored, query)]
        start = int(page_token or 0)
        end = start + page_size
        return StorePage(
            files=[stored.project(fields) for stored in matches[start:end]],
            next_page_token=str(end) if end < len(matches) else None,
        )

    async def get_media(self, file_id: str) -> Any:
        self.calls["get_media"] += 1
        return self._require(file_id).body

    async def get_metadata(self, file_id: str, fields: str = "id,name") -> dict[str, Any]:
        self.calls["get_metadata"] += 1
        return self._require(file_id).project(fields)

    async def create(
        self,
        name: str,
        parent_id: str,
        mime_type: str,
        body: str | bytes | None = None,
    ) -> str:
        self.calls["create"] += 1
        return self.add(name, parent_id, mime_type, body)

    async def delete(self, file_id: str) -> None:
        self.calls["delete"] += 1
        self._require(file_id)
        del self._objects[file_id]

    async def close(self) -> None:
        return None


__all__ = [
    "FOLDER_MIME_TYPE",
    "InMemoryObjectStore",
    "JSON_MIME_TYPE",
    "MAX_PAGE_SIZE",
    "ObjectStore",
    "StorePage",
    "StoreQuery",
    "StoreRequestError",
    "StoredObject",
]
