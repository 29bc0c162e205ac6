from __future__ import annotations

import asyncio

import pytest

from docreview.core.errors import FetchFailed, StoreUnavailable
from docreview.domain import RemoteListing
from docreview.infrastructure import (
    FOLDER_MIME_TYPE,
    InMemoryObjectStore,
    RemoteStoreAdapter,
    StorePage,
    StoreQuery,
    StoreRequestError,
    normalize_bytes,
)


class ScriptedStore(InMemoryObjectStore):
    """Serves pre-built pages keyed by continuation token."""

    def __init__(self, pages: list[StorePage], *, fail_on: int | None = None) -> None:
        super().__init__()
        self.pages = pages
        self.fail_on = fail_on
        self.tokens: list[str | None] = []
        self.page_sizes: list[int] = []

    async def list_page(self, query, fields, *, page_size=1000, page_token=None):
        self.tokens.append(page_token)
        self.page_sizes.append(page_size)
        index = 0 if page_token is None else int(page_token.removeprefix("t"))
        if index == self.fail_on:
            raise StoreRequestError("backend error", status_code=503)
        return self.pages[index]


def _page(start: int, count: int, token: str | None) -> StorePage:
    return StorePage(
        files=[{"id": f"id-{i}", "name": f"doc_{i}.md", "modifiedTime": "2024-01-01T00:00:00Z"} for i in range(start, start + count)],
        next_page_token=token,
    )


def test_list_all_concatenates_pages_in_order():
    store = ScriptedStore([_page(0, 3, "t1"), _page(3, 3, "t2"), _page(6, 2, None)])
    adapter = RemoteStoreAdapter(store, page_size=3)

    listings = asyncio.run(adapter.list_all(StoreQuery("root")))

    assert [item.id for item in listings] == [f"id-{i}" for i in range(8)]
    assert store.tokens == [None, "t1", "t2"]
    assert store.page_sizes == [3, 3, 3]
    assert listings[0] == RemoteListing("id-0", "doc_0.md", "2024-01-01T00:00:00Z")


def test_list_all_fails_whole_listing_when_a_page_fails():
    store = ScriptedStore([_page(0, 2, "t1"), _page(2, 2, None)], fail_on=1)
    adapter = RemoteStoreAdapter(store)

    with pytest.raises(StoreUnavailable):
        asyncio.run(adapter.list_all(StoreQuery("root")))


def test_list_all_pages_through_in_memory_store():
    store = InMemoryObjectStore()
    for i in range(2500):
        store.add(f"doc_{i}.md", "root", "text/markdown")
    store.add("elsewhere.md", "other", "text/markdown")
    adapter = RemoteStoreAdapter(store)

    listings = asyncio.run(adapter.list_all(StoreQuery("root")))

    assert len(listings) == 2500
    assert listings[-1].name == "doc_2499.md"
    assert store.calls["list_page"] == 3


def test_page_size_is_capped():
    store = ScriptedStore([_page(0, 1, None)])
    adapter = RemoteStoreAdapter(store, page_size=5000)
    asyncio.run(adapter.list_all(StoreQuery("root")))
    assert store.page_sizes == [1000]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (b"raw", b"raw"),
        (bytearray(b"array"), b"array"),
        (memoryview(b"view"), b"view"),
        ({"a": [1, 2]}, b'{"a":[1,2]}'),
        ("héllo", "héllo".encode("utf-8")),
        (42, b"42"),
    ],
)
def test_normalize_bytes(raw, expected):
    assert normalize_bytes(raw) == expected


def test_fetch_bytes_normalises_structured_bodies():
    store = InMemoryObjectStore()
    file_id = store.add("a.json", "root", body={"k": "v"})
    adapter = RemoteStoreAdapter(store)

    assert asyncio.run(adapter.fetch_bytes(file_id)) == b'{"k":"v"}'
    assert store.calls["get_media"] == 1


def test_fetch_bytes_raises_for_missing_objects():
    adapter = RemoteStoreAdapter(InMemoryObjectStore())
    with pytest.raises(FetchFailed):
        asyncio.run(adapter.fetch_bytes("nope"))


def test_fetch_bytes_raises_when_object_has_no_body():
    store = InMemoryObjectStore()
    folder_id = store.add_folder("folder", "root")
    with pytest.raises(FetchFailed):
        asyncio.run(RemoteStoreAdapter(store).fetch_bytes(folder_id))


def test_create_and_delete_objects():
    store = InMemoryObjectStore()
    adapter = RemoteStoreAdapter(store)

    async def run():
        folder_id = await adapter.create_object("results_a", "root", FOLDER_MIME_TYPE)
        file_id = await adapter.create_object("item.json", folder_id, "application/json", "{}")
        await adapter.delete_object(file_id)
        return folder_id, file_id

    folder_id, file_id = asyncio.run(run())

    assert store.get(folder_id).mime_type == FOLDER_MIME_TYPE
    assert store.get(file_id) is None
    with pytest.raises(StoreUnavailable):
        asyncio.run(adapter.delete_object(file_id))


def test_fetch_name_reads_metadata():
    store = InMemoryObjectStore()
    file_id = store.add("report.md", "root", "text/markdown", body="# hi")
    assert asyncio.run(RemoteStoreAdapter(store).fetch_name(file_id)) == "report.md"


def test_store_query_renders_drive_expression():
    query = StoreQuery("parent", mime_type=FOLDER_MIME_TYPE, name="O'Brien\\notes")
    assert query.render() == (
        "'parent' in parents and name='O\\'Brien\\\\notes' "
        "and mimeType='application/vnd.google-apps.folder' and trashed=false"
    )
    assert StoreQuery("p", include_trashed=True).render() == "'p' in parents"
