"""Mapping between caller-facing paths and OBS object keys."""

from __future__ import annotations

import re
from typing import Optional

SEPARATOR = "/"


class KeyMapper:
    """Applies and strips the configured key prefix."""

    def __init__(self, prefix: Optional[str] = None):
        clean_prefix = (prefix or "").strip(SEPARATOR)
        self.prefix = clean_prefix or None
        self._prefix_pattern = (
            re.compile("^" + re.escape(self.prefix + SEPARATOR)) if self.prefix else None
        )

    def to_storage_key(self, path: str) -> str:
        """Convert a logical path (e.g. "/docs/a.txt") into an object key."""
        key = path.lstrip(SEPARATOR)
        if self.prefix is not None:
            key = f"{self.prefix}{SEPARATOR}{key}".lstrip(SEPARATOR)
        return key

    def to_directory_key(self, path: str) -> str:
        """Object key addressing everything below ``path``.

        Always ends with exactly one separator, except for the unprefixed root
        which maps to the empty key (the whole bucket).
        """
        key = self.to_storage_key(path).rstrip(SEPARATOR)
        if not key:
            return ""
        return key + SEPARATOR

    def to_logical_path(self, key: str) -> str:
        """Convert an object key back into a logical path."""
        if self._prefix_pattern is not None:
            key = self._prefix_pattern.sub("", key, count=1)
        return SEPARATOR + key.lstrip(SEPARATOR)
