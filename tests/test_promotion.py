from __future__ import annotations

import asyncio
import json

import pytest

from docreview.application import CatalogService, PromotionService
from docreview.core.cache import ObjectCache
from docreview.core.content import StructuredContent, TextContent
from docreview.core.errors import InvalidInput, PromoteFailed
from docreview.domain import EditableItem
from docreview.infrastructure import FOLDER_MIME_TYPE, InMemoryObjectStore, RemoteStoreAdapter, StoreRequestError

RESULTS_ROOT = "results-root"


@pytest.fixture()
def store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture()
def cache() -> ObjectCache:
    return ObjectCache(300)


@pytest.fixture()
def service(store, cache) -> PromotionService:
    return PromotionService(RemoteStoreAdapter(store), cache, results_root=RESULTS_ROOT)


def _item(content=StructuredContent({"total": 3}), name: str = "item_1.json") -> EditableItem:
    return EditableItem(id="i1", name=name, container_id="f1", content=content)


@pytest.mark.parametrize(
    ("item", "folder_name"),
    [
        (_item(content=None), "rpt_2024_01_data"),
        (_item(name=""), "rpt_2024_01_data"),
        (_item(), ""),
    ],
)
def test_invalid_input_makes_no_store_calls(service, store, item, folder_name):
    with pytest.raises(InvalidInput):
        asyncio.run(service.promote(item, folder_name))
    assert sum(store.calls.values()) == 0


def test_creates_missing_folder_and_file(service, store, cache):
    cache.set("result-index", ())
    cache.set("json-index", ())

    outcome = asyncio.run(service.promote(_item(), "rpt_2024_01_data"))

    folder = store.get(outcome.container_id)
    assert folder.name == "rpt_2024_01_data"
    assert folder.mime_type == FOLDER_MIME_TYPE
    assert folder.parent_id == RESULTS_ROOT
    created = store.get(outcome.file_id)
    assert json.loads(created.body) == {"total": 3}
    assert created.body == '{\n  "total": 3\n}'
    assert outcome.created_container is True
    assert outcome.replaced == 0
    assert cache.get("result-index") is None
    assert cache.get("json-index") == ()


def test_replaces_same_named_file_in_existing_folder(service, store, cache):
    folder_id = store.add_folder("rpt_2024_01_data", RESULTS_ROOT)
    old_id = store.add("item_1.json", folder_id, body='{"total": 1}')
    other_id = store.add("item_2.json", folder_id, body="{}")
    cache.set("result-index", ("stale",))

    outcome = asyncio.run(service.promote(_item(content=TextContent('{"total": 9}')), "rpt_2024_01_data"))

    same_name = store.children(folder_id, "item_1.json")
    assert [obj.id for obj in same_name] == [outcome.file_id]
    assert same_name[0].body == '{"total": 9}'
    assert store.get(old_id) is None
    assert store.get(other_id) is not None
    assert outcome.container_id == folder_id
    assert outcome.created_container is False
    assert outcome.replaced == 1
    assert store.calls["delete"] == 1
    assert "result-index" not in cache
    assert len(store.children(RESULTS_ROOT)) == 1


def test_concurrent_promotions_share_one_new_folder(service, store):
    async def run():
        await asyncio.gather(
            service.promote(_item(name="a.json"), "new_folder"),
            service.promote(_item(name="b.json"), "new_folder"),
        )

    asyncio.run(run())

    folders = store.children(RESULTS_ROOT, "new_folder")
    assert len(folders) == 1
    assert sorted(obj.name for obj in store.children(folders[0].id)) == ["a.json", "b.json"]


def test_store_failures_surface_as_promote_failed(store, cache):
    class BrokenStore(InMemoryObjectStore):
        async def create(self, name, parent_id, mime_type, body=None):
            raise StoreRequestError("quota exceeded", status_code=403)

    broken = BrokenStore()
    service = PromotionService(RemoteStoreAdapter(broken), cache, results_root=RESULTS_ROOT)
    cache.set("result-index", ())

    with pytest.raises(PromoteFailed) as excinfo:
        asyncio.run(service.promote(_item(), "rpt_2024_01_data"))

    assert "quota exceeded" in str(excinfo.value)
    assert excinfo.value.__cause__ is not None
    assert cache.get("result-index") == ()


def test_unconfigured_results_root_fails(cache, store):
    service = PromotionService(RemoteStoreAdapter(store), cache, results_root="")
    with pytest.raises(PromoteFailed):
        asyncio.run(service.promote(_item(), "rpt_2024_01_data"))
    assert sum(store.calls.values()) == 0


def test_folder_locks_are_released_after_use(service):
    async def run():
        await asyncio.gather(
            service.promote(_item(name="a.json"), "first"),
            service.promote(_item(name="b.json"), "first"),
            service.promote(_item(name="c.json"), "second"),
        )

    asyncio.run(run())

    assert service._locks == {}
    assert not service._lock_users


def test_failed_create_after_delete_still_invalidates_results(store, cache):
    class FailingUpload(InMemoryObjectStore):
        async def create(self, name, parent_id, mime_type, body=None):
            if mime_type != FOLDER_MIME_TYPE:
                raise StoreRequestError("upload interrupted", status_code=500)
            return await super().create(name, parent_id, mime_type, body)

    failing = FailingUpload()
    folder_id = failing.add_folder("rpt_2024_01_data", RESULTS_ROOT)
    old_id = failing.add("item_1.json", folder_id, body="{}")
    service = PromotionService(RemoteStoreAdapter(failing), cache, results_root=RESULTS_ROOT)
    cache.set("result-index", ("stale",))

    with pytest.raises(PromoteFailed):
        asyncio.run(service.promote(_item(), "rpt_2024_01_data"))

    assert failing.get(old_id) is None
    assert "result-index" not in cache
    assert service._locks == {}


def test_listing_in_flight_during_promotion_is_not_cached():
    class HeldStore(InMemoryObjectStore):
        """Captures one page of ``held_parent`` and returns it only once released."""

        def __init__(self, held_parent: str) -> None:
            super().__init__()
            self.held_parent = held_parent
            self.captured: asyncio.Event | None = None
            self.release: asyncio.Event | None = None

        async def list_page(self, query, fields, *, page_size=1000, page_token=None):
            page = await super().list_page(query, fields, page_size=page_size, page_token=page_token)
            if query.parent_id == self.held_parent and self.release is not None and not self.release.is_set():
                release, self.release = self.release, None
                self.captured.set()
                await release.wait()
            return page

    store = HeldStore("result-1")
    store.add_folder("rpt_2024_01_data", RESULTS_ROOT, object_id="result-1")
    cache = ObjectCache(300)
    adapter = RemoteStoreAdapter(store)
    catalog = CatalogService(adapter, cache, markdown_root="md", json_root="json", result_root=RESULTS_ROOT)
    service = PromotionService(adapter, cache, results_root=RESULTS_ROOT)

    async def run():
        store.captured = asyncio.Event()
        release = store.release = asyncio.Event()
        listing = asyncio.create_task(catalog.list_results())
        await store.captured.wait()
        await service.promote(_item(name="a.json"), "rpt_2024_01_data")
        release.set()
        stale = await listing
        fresh = await catalog.list_results()
        return stale, fresh

    stale, fresh = asyncio.run(run())

    assert stale[0].file_names() == set()
    assert fresh[0].file_names() == {"a.json"}
