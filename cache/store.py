from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class CacheEntry:
    key: str
    response: str
    last_updated: int


@dataclass(slots=True)
class RandomCacheEntry:
    cursor_key: str
    response: str
    last_updated: int
    last_page: int


def _row_to_cache_entry(row: tuple[Any, ...] | None) -> CacheEntry | None:
    # A row whose fields do not decode counts as absent.
    if row is None:
        return None
    key, response, last_updated = row
    if not isinstance(response, str):
        return None
    try:
        return CacheEntry(key=str(key), response=response, last_updated=int(last_updated))
    except (TypeError, ValueError):
        return None


def _row_to_random_entry(row: tuple[Any, ...] | None) -> RandomCacheEntry | None:
    if row is None:
        return None
    cursor_key, response, last_updated, last_page = row
    if not isinstance(response, str):
        return None
    try:
        return RandomCacheEntry(
            cursor_key=str(cursor_key),
            response=response,
            last_updated=int(last_updated),
            last_page=int(last_page),
        )
    except (TypeError, ValueError):
        return None


def get_request_cache_sync(conn: sqlite3.Connection, key: str) -> CacheEntry | None:
    cur = conn.cursor()
    cur.execute(
        "SELECT key, response, last_updated FROM request_cache WHERE key = ? LIMIT 1",
        (key,),
    )
    return _row_to_cache_entry(cur.fetchone())


def set_request_cache_sync(conn: sqlite3.Connection, *, key: str, response: str, last_updated: int) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO request_cache (key, response, last_updated) VALUES (?, ?, ?)",
        (key, response, int(last_updated)),
    )
    conn.commit()


def get_random_cache_sync(conn: sqlite3.Connection, cursor_key: str) -> RandomCacheEntry | None:
    cur = conn.cursor()
    cur.execute(
        "SELECT cursor_key, response, last_updated, last_page FROM cache_stats WHERE cursor_key = ? LIMIT 1",
        (cursor_key,),
    )
    return _row_to_random_entry(cur.fetchone())


def set_random_cache_sync(
    conn: sqlite3.Connection,
    *,
    cursor_key: str,
    response: str,
    last_updated: int,
    last_page: int,
) -> None:
    conn.execute(
        """
        INSERT OR REPLACE INTO cache_stats (cursor_key, response, last_updated, last_page)
        VALUES (?, ?, ?, ?)
        """,
        (cursor_key, response, int(last_updated), int(last_page)),
    )
    conn.commit()


def count_request_cache_sync(conn: sqlite3.Connection) -> int:
    cur = conn.cursor()
    cur.execute("SELECT COUNT(*) FROM request_cache")
    row = cur.fetchone()
    return int(row[0]) if row else 0
