"""Records exchanged between the OBS binding, the listing engine and callers."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional, Sequence, Union

PUBLIC = "public"
PRIVATE = "private"

DEFAULT_PAGE_SIZE = 1000
DEFAULT_MAX_ITERATIONS = 100


@dataclass(frozen=True)
class FileAttributes:
    path: str
    file_size: Optional[int] = None
    visibility: Optional[str] = None
    last_modified: Optional[int] = None
    mime_type: Optional[str] = None

    is_file = True
    is_dir = False


@dataclass(frozen=True)
class DirectoryAttributes:
    path: str

    is_file = False
    is_dir = True


StorageEntry = Union[FileAttributes, DirectoryAttributes]


@dataclass(frozen=True)
class PageCursor:
    """Continuation token returned by the list-objects API.

    The absence of a cursor is ``None``; an empty token is still a token.
    """

    token: str


@dataclass(frozen=True)
class ListingBudget:
    max_keys: int = 0
    timeout_seconds: float = 0
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def unbounded(
        cls,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> "ListingBudget":
        return cls(max_keys=0, timeout_seconds=0, max_iterations=max_iterations, page_size=page_size)

    def remaining(self, emitted: int) -> Optional[int]:
        if self.max_keys <= 0:
            return None
        return max(self.max_keys - emitted, 0)

    def exhausted(self, emitted: int) -> bool:
        return self.max_keys > 0 and emitted >= self.max_keys

    def timed_out(self, started_at: float, now: float) -> bool:
        return self.timeout_seconds > 0 and (now - started_at) >= self.timeout_seconds


@dataclass(frozen=True)
class Grant:
    permission: str
    grantee_id: Optional[str] = None
    group: Optional[str] = None


@dataclass(frozen=True)
class ObjectSummary:
    key: str
    size: int = 0
    last_modified: object = None
    grants: Sequence[Grant] = ()


@dataclass(frozen=True)
class ListPage:
    contents: Sequence[ObjectSummary] = ()
    common_prefixes: Sequence[str] = ()
    next_marker: Optional[PageCursor] = None


@dataclass(frozen=True)
class ObjectMetadata:
    content_type: Optional[str] = None
    content_length: Optional[int] = None
    last_modified: object = None
    etag: Optional[str] = None


@dataclass(frozen=True)
class DeleteFailure:
    key: str
    code: Optional[str] = None
    message: Optional[str] = None


_TIMESTAMP_FORMATS = (
    "%Y/%m/%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%SZ",
)


def parse_timestamp(value: object, default: Optional[int] = None) -> int:
    """Convert an SDK timestamp into epoch seconds.

    Listing responses use ``YYYY/MM/DD HH:MM:SS`` (UTC), metadata responses use
    RFC 1123 header dates, and raw XML uses ISO-8601. Anything else falls back
    to ``default`` or the current time.
    """
    fallback = int(time.time()) if default is None else default

    if value is None or value == "":
        return fallback
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp())

    text = str(value).strip()
    for fmt in _TIMESTAMP_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return int(parsed.replace(tzinfo=timezone.utc).timestamp())

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
    if parsed is None:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            return fallback
    if parsed is None:
        return fallback
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())
