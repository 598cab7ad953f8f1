"""
Unit tests for the pagination cursor cache and its fingerprint.
"""

import threading

import pytest

from mailbridge.integrations.email.cursor_cache import (
    DEFAULT_PAGE_SIZE,
    PaginationCursorCache,
    fingerprint,
    get_cursor_cache,
)
from mailbridge.integrations.email.types import ListQuery
from mailbridge.settings import clear_settings_cache


@pytest.fixture(autouse=True)
def _fresh_singletons():
    clear_settings_cache()
    get_cursor_cache.cache_clear()
    yield
    clear_settings_cache()
    get_cursor_cache.cache_clear()


# ============================================================================
# Fingerprint
# ============================================================================


class TestFingerprint:
    def test_identical_requests_fingerprint_identically(self):
        query = ListQuery(q="invoice", label_ids="INBOX", max_results=20)
        assert fingerprint("token", query) == fingerprint("token", query.model_copy())

    def test_page_position_is_not_part_of_fingerprint(self):
        assert fingerprint("token", ListQuery(q="x")) == fingerprint(
            "token", ListQuery(q="x", page_number=4, page_token="abc")
        )

    def test_default_page_size_matches_explicit_default(self):
        assert fingerprint("token", ListQuery()) == fingerprint(
            "token", ListQuery(max_results=DEFAULT_PAGE_SIZE)
        )

    @pytest.mark.parametrize(
        "other_token,other_query",
        [
            ("other-token", ListQuery(q="invoice")),
            ("token", ListQuery(q="receipt")),
            ("token", ListQuery(q="invoice", label_ids="SENT")),
            ("token", ListQuery(q="invoice", max_results=50)),
        ],
    )
    def test_different_callers_or_filters_differ(self, other_token, other_query):
        assert fingerprint("token", ListQuery(q="invoice")) != fingerprint(other_token, other_query)

    def test_fields_do_not_bleed_into_each_other(self):
        assert fingerprint("token", ListQuery(q="a", label_ids="b")) != fingerprint(
            "token", ListQuery(q="ab")
        )

    def test_label_spacing_is_normalized(self):
        assert fingerprint("token", ListQuery(label_ids="INBOX,UNREAD")) == fingerprint(
            "token", ListQuery(label_ids=" INBOX, UNREAD,")
        )

    def test_raw_credential_is_not_embedded(self):
        assert "secret-token" not in fingerprint("secret-token", ListQuery())


# ============================================================================
# Cache
# ============================================================================


class TestPaginationCursorCache:
    def test_lookup_miss(self):
        assert PaginationCursorCache().lookup("fp", 2) is None

    def test_store_then_lookup(self):
        cache = PaginationCursorCache()
        cache.store("fp", 2, "cursor-2")
        cache.store("fp", 3, "cursor-3")

        assert cache.lookup("fp", 2) == "cursor-2"
        assert cache.lookup("fp", 3) == "cursor-3"
        assert cache.lookup("other", 2) is None
        assert len(cache) == 2

    def test_last_write_wins(self):
        cache = PaginationCursorCache()
        cache.store("fp", 2, "old")
        cache.store("fp", 2, "new")

        assert cache.lookup("fp", 2) == "new"
        assert len(cache) == 1

    def test_bounded_cache_evicts_oldest_write(self):
        cache = PaginationCursorCache(max_entries=2)
        cache.store("fp", 2, "a")
        cache.store("fp", 3, "b")
        cache.store("fp", 2, "a2")  # rewrite refreshes page 2
        cache.store("fp", 4, "c")

        assert cache.lookup("fp", 3) is None
        assert cache.lookup("fp", 2) == "a2"
        assert cache.lookup("fp", 4) == "c"
        assert len(cache) == 2

    def test_rejects_non_positive_bound(self):
        with pytest.raises(ValueError):
            PaginationCursorCache(max_entries=0)

    def test_clear(self):
        cache = PaginationCursorCache()
        cache.store("fp", 2, "a")
        cache.clear()
        assert len(cache) == 0

    def test_concurrent_stores(self):
        cache = PaginationCursorCache()

        def writer(worker: int) -> None:
            for page in range(2, 102):
                cache.store(f"fp-{worker}", page, f"cursor-{worker}-{page}")

        threads = [threading.Thread(target=writer, args=(worker,)) for worker in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache) == 800
        assert cache.lookup("fp-7", 101) == "cursor-7-101"


class TestGetCursorCache:
    def test_singleton(self):
        assert get_cursor_cache() is get_cursor_cache()

    def test_bound_comes_from_settings(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("MAILBRIDGE_CURSOR_CACHE_MAX_ENTRIES", "5")
        assert get_cursor_cache().max_entries == 5

    def test_unbounded_by_default(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("MAILBRIDGE_CURSOR_CACHE_MAX_ENTRIES", raising=False)
        assert get_cursor_cache().max_entries is None
