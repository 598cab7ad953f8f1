"""
mailbridge.integrations.email.cursor_cache - Pagination Cursor Cache

Gmail only hands out opaque forward cursors (``nextPageToken``). To let
clients ask for "page 3" directly, every successful listing records the cursor
for the following page under a fingerprint of (caller, filters, page size).

In-memory and process-local: a restart forgets every cursor, and callers then
have to walk forward from page 1 again.

Usage:
    from mailbridge.integrations.email.cursor_cache import fingerprint, get_cursor_cache

    cache = get_cursor_cache()
    key = fingerprint(token, query)
    cursor = cache.lookup(key, page=3)
"""

import hashlib
import logging
from collections import OrderedDict
from functools import lru_cache
from threading import Lock

from mailbridge.integrations.email.types import ListQuery

logger = logging.getLogger(__name__)

# Page size used in the fingerprint when the caller does not pass max_results
DEFAULT_PAGE_SIZE = 10

_FIELD_SEPARATOR = "\x1f"


def fingerprint(credential: str, query: ListQuery) -> str:
    """Derive a stable cache fingerprint for a caller's listing.

    The credential is hashed on its own first so the raw token never ends up
    in a cache key.

    Args:
        credential: Caller's upstream token
        query: Listing filters

    Returns:
        Hex digest; identical inputs always produce the same value
    """
    credential_hash = hashlib.sha256(credential.encode("utf-8")).hexdigest()
    parts = [
        credential_hash,
        query.q or "",
        ",".join(query.labels()),
        str(query.max_results or DEFAULT_PAGE_SIZE),
    ]
    return hashlib.sha256(_FIELD_SEPARATOR.join(parts).encode("utf-8")).hexdigest()


class PaginationCursorCache:
    """
    Maps (fingerprint, page number) to the upstream cursor that starts that page.

    Thread-safe; the lock covers exactly one lookup or one store and is never
    held across network I/O.

    Attributes:
        max_entries: Optional size bound. None keeps every entry for the life
            of the process; otherwise the oldest-written entries are evicted.

    Example:
        >>> cache = PaginationCursorCache()
        >>> cache.store("fp", 2, "cursor-abc")
        >>> cache.lookup("fp", 2)
        'cursor-abc'
    """

    def __init__(self, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be a positive integer or None")
        self.max_entries = max_entries
        self._entries: OrderedDict[tuple[str, int], str] = OrderedDict()
        self._lock = Lock()

    def lookup(self, key: str, page: int) -> str | None:
        """Return the cursor for *page* of the listing *key*, if recorded."""
        with self._lock:
            return self._entries.get((key, page))

    def store(self, key: str, page: int, cursor: str) -> None:
        """Record *cursor* as the start of *page*. Last write wins."""
        with self._lock:
            self._entries[(key, page)] = cursor
            self._entries.move_to_end((key, page))
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@lru_cache(maxsize=1)
def get_cursor_cache() -> PaginationCursorCache:
    """Return the process-wide cursor cache, sized from settings."""
    from mailbridge.settings import get_settings

    max_entries = get_settings().cursor_cache_max_entries
    logger.debug(f"Initializing pagination cursor cache (max_entries={max_entries})")
    return PaginationCursorCache(max_entries=max_entries)
