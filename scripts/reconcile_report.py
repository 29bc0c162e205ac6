#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from docreview.app import build_store
from docreview.application import CatalogService, PromotionService, ReviewSession
from docreview.config import Settings
from docreview.core.cache import ObjectCache
from docreview.infrastructure import RemoteStoreAdapter


async def _collect(settings: Settings) -> dict:
    store = build_store(settings)
    try:
        cache = ObjectCache(settings.cache_ttl_seconds, max_in_flight=settings.max_parallel_downloads)
        adapter = RemoteStoreAdapter(store, page_size=settings.page_size)
        catalog = CatalogService(
            adapter,
            cache,
            markdown_root=settings.markdown_folder_id,
            json_root=settings.json_folder_id,
            result_root=settings.result_folder_id,
        )
        session = ReviewSession(catalog, PromotionService(adapter, cache, results_root=settings.result_folder_id))
        await session.refresh()
        return session.snapshot()
    finally:
        await store.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the reconciled review status of every source document")
    parser.add_argument("--output", help="also write the full snapshot as JSON to this path")
    args = parser.parse_args()

    snapshot = asyncio.run(_collect(Settings.from_env()))
    if snapshot["error"]:
        raise SystemExit(snapshot["error"])

    progress = {folder["id"]: folder["progress"] for folder in snapshot["containers"]}
    for doc in snapshot["documents"]:
        folder_id = doc["matchingFolderId"]
        share = f"{progress[folder_id]:5.1f}%" if folder_id in progress else "    -"
        print(f"{doc['status']:<12} {share}  {doc['name']}")
    for key in snapshot["ambiguousKeys"]:
        print(f"warning: match key {key!r} is shared by several documents or folders")

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(snapshot, indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"snapshot written to {output}")


if __name__ == "__main__":
    main()
