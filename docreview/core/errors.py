"""Error taxonomy shared by the store adapter, cache and services."""
from __future__ import annotations


class ReviewError(RuntimeError):
    """Base class for failures surfaced by the review backend."""


class StoreUnavailable(ReviewError):
    """Raised when a listing (or one of its pages) cannot be retrieved."""


class FetchFailed(ReviewError):
    """Raised when a single object cannot be fetched from the store."""


class InvalidInput(ReviewError):
    """Raised when a promotion request is malformed."""


class PromoteFailed(ReviewError):
    """Raised when creating or deleting objects during a promotion fails."""


class ParseFailed(ReviewError):
    """Raised when structured content cannot be decoded."""


__all__ = [
    "FetchFailed",
    "InvalidInput",
    "ParseFailed",
    "PromoteFailed",
    "ReviewError",
    "StoreUnavailable",
]
