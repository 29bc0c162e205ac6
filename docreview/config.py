"""Application configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from docreview.core.cache import DEFAULT_MAX_IN_FLIGHT, DEFAULT_TTL_SECONDS
from docreview.infrastructure.store import MAX_PAGE_SIZE

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def _number(environ: Mapping[str, str], name: str, default: float, cast: type) -> float:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive")
    return value


@dataclass(slots=True)
class Settings:
    markdown_folder_id: str = ""
    json_folder_id: str = ""
    result_folder_id: str = ""
    credentials: str | None = None
    cache_ttl_seconds: float = DEFAULT_TTL_SECONDS
    max_parallel_downloads: int = DEFAULT_MAX_IN_FLIGHT
    page_size: int = MAX_PAGE_SIZE
    api_base: str = "https://www.googleapis.com"
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        origins_env = env.get("API_CORS_ORIGINS", "")
        origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]

        return cls(
            markdown_folder_id=env.get("MARKDOWN_FOLDER_ID", "").strip(),
            json_folder_id=env.get("JSON_FOLDER_ID", "").strip(),
            result_folder_id=env.get("RESULT_FOLDER_ID", "").strip(),
            credentials=env.get("GOOGLE_CLOUD_CREDENTIALS") or None,
            cache_ttl_seconds=_number(env, "CACHE_TTL_SECONDS", DEFAULT_TTL_SECONDS, float),
            max_parallel_downloads=int(_number(env, "MAX_PARALLEL_DOWNLOADS", DEFAULT_MAX_IN_FLIGHT, int)),
            page_size=min(int(_number(env, "DRIVE_PAGE_SIZE", MAX_PAGE_SIZE, int)), MAX_PAGE_SIZE),
            api_base=env.get("DRIVE_API_BASE") or "https://www.googleapis.com",
            cors_origins=origins or list(DEFAULT_CORS_ORIGINS),
        )

    def missing_folders(self) -> list[str]:
        names = {
            "MARKDOWN_FOLDER_ID": self.markdown_folder_id,
            "JSON_FOLDER_ID": self.json_folder_id,
            "RESULT_FOLDER_ID": self.result_folder_id,
        }
        return [name for name, value in names.items() if not value]
