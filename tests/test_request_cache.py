from __future__ import annotations

import asyncio
import os
import sqlite3
import unittest

from cache.service import CachedFetcher
from cache.service import canonical_key
from cache.store import get_request_cache_sync
from cache.store import set_request_cache_sync
from db.migrate import apply_sqlite_migrations


def _migrations_dir() -> str:
    return os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations")


class FakeClock:
    def __init__(self, now: int):
        self.now = int(now)

    def __call__(self) -> int:
        return self.now


class CountingFetch:
    def __init__(self, *responses: str):
        self.responses = list(responses)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        return self.responses[min(self.calls, len(self.responses)) - 1]


class CanonicalKeyTests(unittest.TestCase):
    def test_dict_keys_are_order_independent(self):
        a = canonical_key({"query": "q", "variables": {"id": 1, "type": "ANIME"}})
        b = canonical_key({"variables": {"type": "ANIME", "id": 1}, "query": "q"})
        self.assertEqual(a, b)

    def test_strings_pass_through(self):
        self.assertEqual(canonical_key("anime"), "anime")


class CachedFetcherTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.conn = sqlite3.connect(":memory:", check_same_thread=False)
        apply_sqlite_migrations(self.conn, _migrations_dir())
        self.clock = FakeClock(1000)
        self.fetcher = CachedFetcher(db_lock=asyncio.Lock(), db_conn=self.conn, now_func=self.clock)

    async def asyncTearDown(self):
        self.conn.close()

    async def test_fresh_hit_then_stale_refetch(self):
        do_fetch = CountingFetch("R1", "R2")

        self.assertEqual(await self.fetcher.fetch("k", 60, False, do_fetch), "R1")
        self.assertEqual(do_fetch.calls, 1)

        self.clock.now = 1030
        self.assertEqual(await self.fetcher.fetch("k", 60, False, do_fetch), "R1")
        self.assertEqual(do_fetch.calls, 1)

        self.clock.now = 1060
        self.assertEqual(await self.fetcher.fetch("k", 60, False, do_fetch), "R2")
        self.assertEqual(do_fetch.calls, 2)

        entry = get_request_cache_sync(self.conn, "k")
        self.assertEqual(entry.response, "R2")
        self.assertEqual(entry.last_updated, 1060)

    async def test_bypass_always_fetches_and_stores(self):
        do_fetch = CountingFetch("A", "B")

        self.assertEqual(await self.fetcher.fetch("img", 3600, True, do_fetch), "A")
        self.assertEqual(await self.fetcher.fetch("img", 3600, True, do_fetch), "B")
        self.assertEqual(do_fetch.calls, 2)
        self.assertEqual(get_request_cache_sync(self.conn, "img").response, "B")

    async def test_bypass_store_failure_still_returns_response(self):
        self.conn.execute("DROP TABLE request_cache")
        do_fetch = CountingFetch("A")

        self.assertEqual(await self.fetcher.fetch("img", 60, True, do_fetch), "A")

    async def test_undecodable_row_counts_as_miss(self):
        self.conn.execute(
            "INSERT INTO request_cache (key, response, last_updated) VALUES (?, ?, ?)",
            ("k", "old", "not-a-number"),
        )
        self.conn.commit()
        do_fetch = CountingFetch("fresh")

        self.assertEqual(await self.fetcher.fetch("k", 60, False, do_fetch), "fresh")
        self.assertEqual(do_fetch.calls, 1)
        self.assertEqual(get_request_cache_sync(self.conn, "k").last_updated, 1000)

    async def test_read_failure_counts_as_miss_and_write_failure_propagates(self):
        self.conn.execute("DROP TABLE request_cache")
        do_fetch = CountingFetch("fresh")

        with self.assertRaises(sqlite3.OperationalError):
            await self.fetcher.fetch("k", 60, False, do_fetch)
        self.assertEqual(do_fetch.calls, 1)

    async def test_fetch_error_propagates_and_leaves_entry_untouched(self):
        set_request_cache_sync(self.conn, key="k", response="old", last_updated=900)

        async def boom() -> str:
            raise RuntimeError("upstream down")

        with self.assertRaises(RuntimeError):
            await self.fetcher.fetch("k", 60, False, boom)
        entry = get_request_cache_sync(self.conn, "k")
        self.assertEqual((entry.response, entry.last_updated), ("old", 900))

    async def test_structured_keys_share_one_row(self):
        do_fetch = CountingFetch("R1")
        await self.fetcher.fetch({"b": 2, "a": 1}, 60, False, do_fetch)
        await self.fetcher.fetch({"a": 1, "b": 2}, 60, False, do_fetch)
        self.assertEqual(do_fetch.calls, 1)


if __name__ == "__main__":
    unittest.main()
