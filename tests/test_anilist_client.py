from __future__ import annotations

import asyncio
import json
import os
import random
import sqlite3
import unittest

from cache.service import CachedFetcher
from clients.anilist import AniListClient
from clients.anilist import MINIMAL_ANIME_QUERY
from clients.anilist import RANDOM_PAGE_QUERY
from clients.anilist import SEIYUU_QUERY
from clients.anilist import USER_QUERY
from clients.anilist import preferred_title
from clients.http import UpstreamError
from db.migrate import apply_sqlite_migrations
from jobs.random_stats import advance_random_cursor


def _migrations_dir() -> str:
    return os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations")


class FakeAniList:
    """Answers AniList GraphQL payloads from canned data."""

    def __init__(self, *, media=None, random_pages: int = 3, staff=None, users=None):
        self.media = media
        self.staff = staff
        self.users = users or {}
        self.random_pages = int(random_pages)
        self.payloads: list[dict] = []

    async def __call__(self, payload: dict) -> str:
        self.payloads.append(payload)
        query = payload["query"]
        variables = payload["variables"]
        if query == RANDOM_PAGE_QUERY:
            page = int(variables["page"])
            items = [{"id": page * 100 + i, "title": {"romaji": f"R{page}-{i}"}} for i in range(2)]
            return json.dumps(
                {"data": {"Page": {"pageInfo": {"hasNextPage": page < self.random_pages}, "media": items}}}
            )
        if query == SEIYUU_QUERY and self.staff is not None:
            return json.dumps({"data": {"Staff": self.staff}})
        if query == USER_QUERY and variables.get("name") in self.users:
            return json.dumps({"data": {"User": self.users[variables["name"]]}})
        if self.media is None:
            return json.dumps({"data": None, "errors": [{"message": "Not Found."}]})
        return json.dumps({"data": {"Media": self.media}})


class AniListClientTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.conn = sqlite3.connect(":memory:", check_same_thread=False)
        apply_sqlite_migrations(self.conn, _migrations_dir())
        self.now = 10_000
        self.fetcher = CachedFetcher(db_lock=asyncio.Lock(), db_conn=self.conn, now_func=lambda: self.now)

    async def asyncTearDown(self):
        self.conn.close()

    def _client(self, upstream: FakeAniList) -> AniListClient:
        return AniListClient(
            fetcher=self.fetcher,
            ttl_seconds=3600,
            random_ttl_seconds=3600,
            post_func=upstream,
            rng=random.Random(7),
        )

    async def test_media_lookup_is_cached_by_request_body(self):
        upstream = FakeAniList(media={"id": 1, "title": {"romaji": "Cowboy Bebop"}})
        client = self._client(upstream)

        first = await client.media("anime", "Cowboy Bebop")
        second = await client.media("anime", "Cowboy Bebop")

        self.assertEqual(first, second)
        self.assertEqual(len(upstream.payloads), 1)
        self.assertEqual(upstream.payloads[0]["variables"], {"search": "Cowboy Bebop", "type": "ANIME"})

    async def test_numeric_search_becomes_id_and_manga_excludes_novels(self):
        upstream = FakeAniList(media={"id": 30013})
        client = self._client(upstream)

        await client.media("manga", "30013")

        self.assertEqual(
            upstream.payloads[0]["variables"],
            {"id": 30013, "type": "MANGA", "format_not": "NOVEL"},
        )

    async def test_light_novel_lookup_asks_for_novel_format(self):
        upstream = FakeAniList(media={"id": 85737, "format": "NOVEL"})
        client = self._client(upstream)

        await client.media("ln", "Overlord")

        self.assertEqual(
            upstream.payloads[0]["variables"],
            {"search": "Overlord", "type": "MANGA", "format": "NOVEL"},
        )
        self.assertIn("format: $format", upstream.payloads[0]["query"])

    async def test_seiyuu_lookup_requests_voiced_characters(self):
        upstream = FakeAniList(staff={"id": 95185, "name": {"full": "Kana Hanazawa"}, "characters": {"nodes": []}})
        client = self._client(upstream)

        staff = await client.seiyuu("Kana Hanazawa")

        self.assertEqual(staff["name"]["full"], "Kana Hanazawa")
        self.assertEqual(upstream.payloads[0]["query"], SEIYUU_QUERY)
        self.assertEqual(upstream.payloads[0]["variables"], {"search": "Kana Hanazawa", "perPage": 16})

    async def test_error_body_raises_and_is_not_cached(self):
        upstream = FakeAniList(media=None)
        client = self._client(upstream)

        with self.assertRaises(UpstreamError):
            await client.character("nobody")
        with self.assertRaises(UpstreamError):
            await client.character("nobody")
        self.assertEqual(len(upstream.payloads), 2)

    async def test_next_occurrence_reads_airing_episode_and_bypasses_cache(self):
        upstream = FakeAniList(
            media={
                "id": 5,
                "title": {"romaji": "Romaji", "english": None},
                "nextAiringEpisode": {"airingAt": 2000, "episode": 6},
            }
        )
        client = self._client(upstream)

        nxt = await client.next_occurrence("5")
        await client.next_occurrence("5")

        self.assertEqual((nxt.fire_at, nxt.episode_or_sequence, nxt.display_name), (2000, "6", "Romaji"))
        self.assertEqual(len(upstream.payloads), 2)
        self.assertEqual(upstream.payloads[0]["query"], MINIMAL_ANIME_QUERY)

    async def test_next_occurrence_is_none_when_not_airing(self):
        upstream = FakeAniList(media={"id": 5, "title": {"english": "Done"}, "nextAiringEpisode": None})
        self.assertIsNone(await self._client(upstream).next_occurrence("5"))

    async def test_random_media_picks_within_known_pages(self):
        upstream = FakeAniList(random_pages=3)
        client = self._client(upstream)

        media = await client.random_media("anime")

        self.assertIsNotNone(media)
        self.assertEqual(await self.fetcher.peek_page("anime"), 2)
        self.assertLess(media["id"] // 100, 3)

    async def test_unknown_random_type_is_rejected(self):
        with self.assertRaises(ValueError):
            await self._client(FakeAniList()).random_media("novel")

    async def test_cursor_job_walks_to_last_page(self):
        upstream = FakeAniList(random_pages=4)
        client = self._client(upstream)

        last = await advance_random_cursor(anilist=client, fetcher=self.fetcher, media_type="anime")

        self.assertEqual(last, 4)
        self.assertEqual(await self.fetcher.peek_page("anime"), 4)


class PreferredTitleTests(unittest.TestCase):
    def test_english_then_romaji_then_fallback(self):
        self.assertEqual(preferred_title({"english": "E", "romaji": "R"}), "E")
        self.assertEqual(preferred_title({"english": None, "romaji": "R"}), "R")
        self.assertEqual(preferred_title(None), "nothing")


if __name__ == "__main__":
    unittest.main()
