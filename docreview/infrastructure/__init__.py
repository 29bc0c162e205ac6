"""Infrastructure layer exports."""

from .adapter import LISTING_FIELDS, RemoteStoreAdapter, normalize_bytes
from .auth import ServiceAccountToken, StaticToken, TokenSource, token_source_from_credentials
from .drive import DriveClient
from .store import (
    FOLDER_MIME_TYPE,
    JSON_MIME_TYPE,
    InMemoryObjectStore,
    ObjectStore,
    StorePage,
    StoreQuery,
    StoreRequestError,
)

__all__ = [
    "DriveClient",
    "FOLDER_MIME_TYPE",
    "InMemoryObjectStore",
    "JSON_MIME_TYPE",
    "LISTING_FIELDS",
    "ObjectStore",
    "RemoteStoreAdapter",
    "ServiceAccountToken",
    "StaticToken",
    "StorePage",
    "StoreQuery",
    "StoreRequestError",
    "TokenSource",
    "normalize_bytes",
    "token_source_from_credentials",
]
