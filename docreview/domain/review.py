"""Domain entities for document review and reconciliation."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from docreview.core.content import ItemContent


class Status(str, Enum):
    """Completion state derived for a source document on every reconciliation."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class RemoteListing:
    """Immutable snapshot of one object as reported by the remote store."""

    id: str
    name: str
    modified_time: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "RemoteListing":
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or ""),
            modified_time=payload.get("modifiedTime"),
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.modified_time is not None:
            payload["modifiedTime"] = self.modified_time
        return payload


@dataclass(frozen=True, slots=True)
class ContainerListing:
    """A data folder together with the JSON files it holds, as listed."""

    id: str
    name: str
    files: tuple[RemoteListing, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "files": [item.to_payload() for item in self.files],
        }


@dataclass(frozen=True, slots=True)
class ResultContainer:
    """Read-only mirror of a folder in the results area."""

    container_id: str
    container_name: str
    files: tuple[RemoteListing, ...] = ()

    def file_names(self) -> set[str]:
        return {item.name for item in self.files}

    def to_payload(self) -> dict[str, Any]:
        return {
            "folderId": self.container_id,
            "folderName": self.container_name,
            "files": [item.to_payload() for item in self.files],
        }


@dataclass(slots=True)
class SourceDocument:
    """A Markdown document awaiting review."""

    id: str
    name: str
    content: str | None = None
    matching_container_id: str | None = None
    status: Status = Status.PENDING

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "matchingFolderId": self.matching_container_id,
            "status": self.status.value,
            "contentLoaded": self.content is not None,
        }


@dataclass(slots=True)
class EditableItem:
    """One editable JSON file inside a data folder.

    ``edited`` and ``approved`` only ever move from ``False`` to ``True`` during a
    session; they are cleared only by discarding the item.
    """

    id: str
    name: str
    container_id: str
    content: ItemContent | None = None
    edited: bool = False
    approved: bool = False

    def mark_edited(self) -> None:
        self.edited = True

    def mark_approved(self) -> None:
        self.approved = True

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "folderId": self.container_id,
            "edited": self.edited,
            "approved": self.approved,
            "contentLoaded": self.content is not None,
        }


@dataclass(slots=True)
class EditableContainer:
    """A data folder holding the editable files for one source document."""

    id: str
    name: str
    files: list[EditableItem] = field(default_factory=list)
    matching_document_id: str | None = None
    progress: float = 0.0

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "files": [item.to_payload() for item in self.files],
            "matchingMarkdownId": self.matching_document_id,
            "progress": self.progress,
        }
