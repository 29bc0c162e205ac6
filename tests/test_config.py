from __future__ import annotations

import pytest
from google.oauth2 import service_account

from docreview.app import build_store, create_app
from docreview.config import DEFAULT_CORS_ORIGINS, Settings
from docreview.infrastructure import DriveClient, InMemoryObjectStore, ServiceAccountToken


def test_defaults_without_environment():
    settings = Settings.from_env({})
    assert settings.cache_ttl_seconds == 300
    assert settings.max_parallel_downloads == 5
    assert settings.page_size == 1000
    assert settings.cors_origins == DEFAULT_CORS_ORIGINS
    assert settings.credentials is None
    assert settings.missing_folders() == ["MARKDOWN_FOLDER_ID", "JSON_FOLDER_ID", "RESULT_FOLDER_ID"]


def test_reads_folders_and_tuning_values():
    settings = Settings.from_env(
        {
            "MARKDOWN_FOLDER_ID": " md ",
            "JSON_FOLDER_ID": "js",
            "RESULT_FOLDER_ID": "res",
            "CACHE_TTL_SECONDS": "60",
            "MAX_PARALLEL_DOWNLOADS": "2",
            "DRIVE_PAGE_SIZE": "5000",
            "API_CORS_ORIGINS": "https://a.example, https://b.example,",
        }
    )
    assert settings.markdown_folder_id == "md"
    assert settings.missing_folders() == []
    assert settings.cache_ttl_seconds == 60
    assert settings.max_parallel_downloads == 2
    assert settings.page_size == 1000
    assert settings.cors_origins == ["https://a.example", "https://b.example"]


@pytest.mark.parametrize("value", ["soon", "0", "-3"])
def test_rejects_bad_numbers(value):
    with pytest.raises(ValueError):
        Settings.from_env({"CACHE_TTL_SECONDS": value})


def test_store_selection_follows_credentials():
    assert isinstance(build_store(Settings()), InMemoryObjectStore)
    assert isinstance(build_store(Settings(credentials='{"access_token": "abc"}')), DriveClient)


def test_app_exposes_services_on_state():
    app = create_app(Settings(markdown_folder_id="md", cache_ttl_seconds=42), store=InMemoryObjectStore())
    assert app.state.cache.ttl_seconds == 42
    assert app.state.catalog.cache is app.state.cache
    paths = {route.path for route in app.routes}
    assert {"/api/markdown-files", "/api/save-json", "/api/health", "/api/review"} <= paths


def test_service_account_blob_builds_a_drive_client(monkeypatch):
    monkeypatch.setattr(
        service_account.Credentials, "from_service_account_info", lambda info, scopes: object()
    )
    blob = '{"type": "service_account", "client_email": "svc@example.com", "private_key": "key"}'

    store = build_store(Settings(credentials=blob))

    assert isinstance(store, DriveClient)
    assert isinstance(store._auth, ServiceAccountToken)
