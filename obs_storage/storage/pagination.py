"""Cursor-driven walk over the OBS list-objects API.

The remote listing is not a snapshot and has been seen to hand back the same
marker twice or overlapping pages, so every walk is guarded by an iteration
ceiling, a repeated-marker check and per-call key de-duplication.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterator, Optional

from obs_storage.core.errors import ObsRemoteError, PaginationExhausted, UnableToListContents
from obs_storage.core.retry import RetryExecutor
from obs_storage.storage.acl import acl_to_visibility
from obs_storage.storage.keys import SEPARATOR, KeyMapper
from obs_storage.storage.models import (
    DirectoryAttributes,
    FileAttributes,
    ListingBudget,
    ListPage,
    PageCursor,
    StorageEntry,
    parse_timestamp,
)

logger = logging.getLogger(__name__)


class PaginationEngine:
    def __init__(
        self,
        client,
        key_mapper: KeyMapper,
        executor: RetryExecutor,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            client: OBS binding exposing ``list_objects(prefix, delimiter, marker, max_keys)``
            key_mapper: Maps returned keys back to logical paths
            executor: Retry executor wrapping each page fetch
            clock: Monotonic time source for the timeout budget
        """
        self.client = client
        self.key_mapper = key_mapper
        self.executor = executor
        self._clock = clock

    def iter_entries(
        self,
        key_prefix: str,
        recursive: bool,
        budget: ListingBudget,
        location: str = "",
    ) -> Iterator[StorageEntry]:
        """
        Lazily yield file and directory entries below ``key_prefix``.

        Args:
            key_prefix: Already-mapped key prefix ("" or ending with "/")
            recursive: False stops at one directory level (delimiter listing)
            budget: Key count, timeout and iteration limits for this call
            location: Logical path used in error messages

        Raises:
            UnableToListContents: If a page fetch fails (after retries)
            PaginationExhausted: If the iteration ceiling is exceeded
        """
        delimiter = None if recursive else SEPARATOR
        emitted = 0
        seen_keys: set[str] = set()
        seen_prefixes: set[str] = set()

        pages = self._iter_pages(key_prefix, delimiter, budget, lambda: budget.remaining(emitted))
        try:
            for page in pages:
                for summary in page.contents:
                    if summary.key == key_prefix or summary.key in seen_keys:
                        continue
                    seen_keys.add(summary.key)

                    if summary.key.endswith(SEPARATOR):
                        # marker object of a nested directory
                        if summary.key in seen_prefixes:
                            continue
                        seen_prefixes.add(summary.key)
                        yield self._directory(summary.key)
                    else:
                        yield FileAttributes(
                            path=self.key_mapper.to_logical_path(summary.key),
                            file_size=int(summary.size or 0),
                            visibility=acl_to_visibility(summary.grants),
                            last_modified=parse_timestamp(summary.last_modified),
                        )
                    emitted += 1
                    if budget.exhausted(emitted):
                        return

                for prefix in page.common_prefixes:
                    if prefix in seen_prefixes:
                        continue
                    seen_prefixes.add(prefix)

                    yield self._directory(prefix)
                    emitted += 1
                    if budget.exhausted(emitted):
                        return
        except ObsRemoteError as exc:
            raise UnableToListContents(location or key_prefix, exc) from exc
        finally:
            pages.close()

    def _directory(self, prefix: str) -> DirectoryAttributes:
        return DirectoryAttributes(path=self.key_mapper.to_logical_path(prefix.rstrip(SEPARATOR)))

    def iter_keys(self, key_prefix: str, budget: Optional[ListingBudget] = None) -> Iterator[str]:
        """
        Yield every object key below ``key_prefix``, directory marker included.

        Remote failures propagate as ObsRemoteError so the caller can wrap them.
        """
        budget = budget or ListingBudget.unbounded()
        seen_keys: set[str] = set()

        for page in self._iter_pages(key_prefix, None, budget, lambda: None):
            for summary in page.contents:
                if summary.key in seen_keys:
                    continue
                seen_keys.add(summary.key)
                yield summary.key

    def _iter_pages(
        self,
        key_prefix: str,
        delimiter: Optional[str],
        budget: ListingBudget,
        remaining: Callable[[], Optional[int]],
    ) -> Iterator[ListPage]:
        started_at = self._clock()
        iteration_count = 0
        cursor: Optional[PageCursor] = None
        previous: Optional[PageCursor] = None

        while True:
            if budget.timed_out(started_at, self._clock()):
                logger.warning(
                    "Listing of %r stopped after %.1fs timeout budget", key_prefix, budget.timeout_seconds
                )
                return

            iteration_count += 1
            if iteration_count > budget.max_iterations:
                raise PaginationExhausted(
                    f"Maximum iterations reached. Possible infinite loop detected "
                    f"while listing {key_prefix!r} ({budget.max_iterations} pages)."
                )

            if cursor is not None and cursor == previous:
                return

            left = remaining()
            max_keys = budget.page_size if left is None else min(budget.page_size, left)
            page = self.executor.execute(
                lambda: self.client.list_objects(
                    prefix=key_prefix,
                    delimiter=delimiter,
                    marker=cursor,
                    max_keys=max_keys,
                )
            )
            logger.debug(
                "Fetched page %d for %r: %d objects, %d prefixes",
                iteration_count,
                key_prefix,
                len(page.contents),
                len(page.common_prefixes),
            )
            yield page

            next_cursor = page.next_marker
            if next_cursor is None:
                return
            if next_cursor == cursor:
                logger.warning("Listing of %r returned a repeated marker; stopping", key_prefix)
                return

            previous, cursor = cursor, next_cursor
