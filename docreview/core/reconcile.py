"""Three-way reconciliation of source documents, data folders and results.

Every call derives ``status``, ``progress`` and the match ids from scratch and
returns fresh objects; the inputs are never mutated.  Two progress figures
exist on purpose: before a folder has a counterpart in the results area its
progress counts locally approved items, afterwards it counts item names that
already made it into the results folder.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence

from docreview.core.naming import match_key, normalize_key
from docreview.domain import EditableContainer, ResultContainer, SourceDocument, Status

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconciliationResult:
    documents: list[SourceDocument] = field(default_factory=list)
    containers: list[EditableContainer] = field(default_factory=list)
    ambiguous_keys: list[str] = field(default_factory=list)

    def document(self, doc_id: str) -> SourceDocument | None:
        return next((doc for doc in self.documents if doc.id == doc_id), None)

    def container(self, container_id: str) -> EditableContainer | None:
        return next((folder for folder in self.containers if folder.id == container_id), None)


def document_key(document: SourceDocument) -> str:
    return normalize_key(match_key(document.name, has_extension=True))


def container_key(container: EditableContainer) -> str:
    return normalize_key(match_key(container.name))


def percentage(count: int, total: int) -> float:
    return 100 * count / total if total else 0.0


def approved_progress(container: EditableContainer) -> float:
    return percentage(sum(1 for item in container.files if item.approved), len(container.files))


def find_result(container: EditableContainer, results: Sequence[ResultContainer]) -> ResultContainer | None:
    """First result folder whose name equals the data folder's name exactly."""

    return next((result for result in results if result.container_name == container.name), None)


def _ambiguous_keys(documents: Sequence[SourceDocument], containers: Sequence[EditableContainer]) -> list[str]:
    doc_counts = Counter(document_key(doc) for doc in documents)
    folder_counts = Counter(container_key(folder) for folder in containers)
    shared = {key for key, count in folder_counts.items() if count > 1 and key in doc_counts}
    shared |= {key for key, count in doc_counts.items() if count > 1 and key in folder_counts}
    return sorted(shared)


def match_documents(
    documents: Sequence[SourceDocument],
    containers: Sequence[EditableContainer],
) -> dict[str, str]:
    """Map document id to data folder id.

    Each document takes the first folder, in listing order, whose match key is
    equal ignoring case.  A folder already taken by an earlier document is
    skipped so the pairing stays one-to-one.
    """

    pairs: dict[str, str] = {}
    claimed: set[str] = set()
    keyed = [(container_key(folder), folder) for folder in containers]
    for doc in documents:
        wanted = document_key(doc)
        for key, folder in keyed:
            if key == wanted and folder.id not in claimed:
                pairs[doc.id] = folder.id
                claimed.add(folder.id)
                break
    return pairs


def derive_status(container: EditableContainer | None, results: Sequence[ResultContainer]) -> tuple[Status, float | None]:
    """Return the document status and, when a result folder exists, the overlap progress."""

    if container is None:
        return Status.PENDING, None

    result = find_result(container, results)
    if result is None:
        edited = any(item.edited for item in container.files)
        return (Status.IN_PROGRESS if edited else Status.PENDING), None

    promoted = result.file_names()
    total = len(container.files)
    completed = sum(1 for item in container.files if item.name in promoted)
    progress = percentage(completed, total)
    if completed == 0:
        return Status.PENDING, progress
    if completed < total:
        return Status.IN_PROGRESS, progress
    return Status.COMPLETED, progress


def reconcile(
    documents: Iterable[SourceDocument],
    containers: Iterable[EditableContainer],
    results: Iterable[ResultContainer],
) -> ReconciliationResult:
    documents = list(documents)
    containers = list(containers)
    results = list(results)

    ambiguous = _ambiguous_keys(documents, containers)
    if ambiguous:
        LOGGER.warning("Match keys shared by several documents or folders: %s", ", ".join(ambiguous))

    pairs = match_documents(documents, containers)
    owners = {folder_id: doc_id for doc_id, folder_id in pairs.items()}
    derived = {folder.id: derive_status(folder, results) for folder in containers}

    annotated_containers = []
    for folder in containers:
        _, overlap = derived[folder.id]
        annotated_containers.append(
            replace(
                folder,
                files=list(folder.files),
                matching_document_id=owners.get(folder.id),
                progress=approved_progress(folder) if overlap is None else overlap,
            )
        )

    annotated_documents = []
    for doc in documents:
        folder_id = pairs.get(doc.id)
        status = derived[folder_id][0] if folder_id else Status.PENDING
        annotated_documents.append(replace(doc, matching_container_id=folder_id, status=status))

    return ReconciliationResult(
        documents=annotated_documents,
        containers=annotated_containers,
        ambiguous_keys=ambiguous,
    )


__all__ = [
    "ReconciliationResult",
    "approved_progress",
    "derive_status",
    "find_result",
    "match_documents",
    "reconcile",
]
