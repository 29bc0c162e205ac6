"""Domain layer definitions."""

from .review import (
    ContainerListing,
    EditableContainer,
    EditableItem,
    RemoteListing,
    ResultContainer,
    SourceDocument,
    Status,
)

__all__ = [
    "ContainerListing",
    "EditableContainer",
    "EditableItem",
    "RemoteListing",
    "ResultContainer",
    "SourceDocument",
    "Status",
]
