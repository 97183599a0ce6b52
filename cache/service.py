from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Awaitable, Callable

from cache.store import get_random_cache_sync
from cache.store import get_request_cache_sync
from cache.store import set_random_cache_sync
from cache.store import set_request_cache_sync


FetchFunc = Callable[[], Awaitable[str]]
FetchPageFunc = Callable[[int], Awaitable[tuple[str, bool]]]


def canonical_key(value: Any) -> str:
    """Serialize a request description into a stable cache key."""
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class CachedFetcher:
    """Cache-or-fetch in front of an arbitrary async read.

    Entries are judged fresh purely by age at read time. Nothing is evicted,
    and concurrent misses on one key are not coalesced: each caller fetches
    and the last write wins.
    """

    def __init__(
        self,
        *,
        db_lock,
        db_conn,
        initial_page: int = 1,
        now_func: Callable[[], int] | None = None,
        label: str = "Cache",
    ) -> None:
        self.db_lock = db_lock
        self.db_conn = db_conn
        self.initial_page = max(1, int(initial_page or 1))
        self.now_func = now_func or (lambda: int(time.time()))
        self.label = label

    def _now(self) -> int:
        return int(self.now_func())

    async def _read_entry(self, key: str):
        try:
            async with self.db_lock:
                return await asyncio.to_thread(get_request_cache_sync, self.db_conn, key)
        except Exception as e:
            print(f"[{self.label}] read failed key={key[:80]!r}: {e}")
            return None

    async def _write_entry(self, key: str, response: str) -> None:
        async with self.db_lock:
            await asyncio.to_thread(
                set_request_cache_sync,
                self.db_conn,
                key=key,
                response=response,
                last_updated=self._now(),
            )

    async def fetch(
        self,
        key: Any,
        ttl_seconds: int,
        always_bypass: bool,
        do_fetch: FetchFunc,
    ) -> str:
        key = canonical_key(key)

        if always_bypass:
            response = await do_fetch()
            try:
                await self._write_entry(key, response)
            except Exception as e:
                print(f"[{self.label}] bypass store failed key={key[:80]!r}: {e}")
            return response

        entry = await self._read_entry(key)
        if entry is not None and self._now() - entry.last_updated < int(ttl_seconds):
            return entry.response

        response = await do_fetch()
        try:
            await self._write_entry(key, response)
        except Exception as e:
            print(f"[{self.label}] store failed key={key[:80]!r}: {e}")
            raise
        return response

    async def fetch_page(
        self,
        cursor_key: str,
        ttl_seconds: int,
        do_fetch_page: FetchPageFunc,
    ) -> str:
        try:
            async with self.db_lock:
                entry = await asyncio.to_thread(get_random_cache_sync, self.db_conn, cursor_key)
        except Exception as e:
            print(f"[{self.label}] cursor read failed cursor={cursor_key!r}: {e}")
            entry = None

        if entry is not None and self._now() - entry.last_updated < int(ttl_seconds):
            return entry.response

        page = entry.last_page if entry is not None else self.initial_page
        response, has_next = await do_fetch_page(page)
        next_page = page + 1 if has_next else page

        try:
            async with self.db_lock:
                await asyncio.to_thread(
                    set_random_cache_sync,
                    self.db_conn,
                    cursor_key=cursor_key,
                    response=response,
                    last_updated=self._now(),
                    last_page=next_page,
                )
        except Exception as e:
            print(f"[{self.label}] cursor store failed cursor={cursor_key!r}: {e}")
            raise
        return response

    async def peek_page(self, cursor_key: str) -> int | None:
        async with self.db_lock:
            entry = await asyncio.to_thread(get_random_cache_sync, self.db_conn, cursor_key)
        return entry.last_page if entry is not None else None
