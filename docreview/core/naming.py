from __future__ import annotations

import posixpath

KEY_DELIMITER = "_"
KEY_SEGMENTS = 3


def strip_extension(name: str) -> str:
    stem, _ = posixpath.splitext(name)
    return stem


def match_key(name: str, *, has_extension: bool = False) -> str:
    """Return the first three ``_``-separated segments of ``name``.

    Source documents carry a file extension which is dropped first; data
    folder names are used as-is.
    """

    base = strip_extension(name) if has_extension else name
    return KEY_DELIMITER.join(base.split(KEY_DELIMITER)[:KEY_SEGMENTS])


def normalize_key(key: str) -> str:
    return key.lower()
