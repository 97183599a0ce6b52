from __future__ import annotations

import random
from typing import Any, Awaitable, Callable

from activity.service import NextOccurrence
from cache.service import CachedFetcher
from clients.http import UpstreamError
from clients.http import parse_json_text
from clients.http import post_json_text


ANILIST_URL = "https://graphql.anilist.co/"
RANDOM_PER_PAGE = 50
SEIYUU_CHARACTERS = 16
MEDIA_TYPES = ("anime", "manga")

MEDIA_QUERY = """
query ($id: Int, $search: String, $type: MediaType, $format: MediaFormat, $format_not: MediaFormat) {
  Media(id: $id, search: $search, type: $type, format: $format, format_not: $format_not) {
    id
    siteUrl
    title { romaji english native }
    description(asHtml: false)
    format
    status
    episodes
    chapters
    volumes
    averageScore
    genres
    startDate { year month day }
    coverImage { extraLarge }
    nextAiringEpisode { airingAt episode }
  }
}
"""

CHARACTER_QUERY = """
query ($id: Int, $search: String) {
  Character(id: $id, search: $search) {
    id
    siteUrl
    name { full native }
    description(asHtml: false)
    favourites
    image { large }
  }
}
"""

STAFF_QUERY = """
query ($id: Int, $search: String) {
  Staff(id: $id, search: $search) {
    id
    siteUrl
    name { full native }
    description(asHtml: false)
    primaryOccupations
    image { large }
  }
}
"""

STUDIO_QUERY = """
query ($id: Int, $search: String) {
  Studio(id: $id, search: $search) {
    id
    siteUrl
    name
    isAnimationStudio
    favourites
    media(perPage: 10, sort: POPULARITY_DESC) {
      nodes { id title { romaji english } }
    }
  }
}
"""

USER_QUERY = """
query ($id: Int, $name: String) {
  User(id: $id, name: $name) {
    id
    name
    siteUrl
    avatar { large }
    statistics {
      anime {
        count meanScore minutesWatched episodesWatched
        statuses { status count }
        genres(limit: 5, sort: COUNT_DESC) { genre count }
        tags(limit: 5, sort: COUNT_DESC) { tag { name } count }
      }
      manga {
        count meanScore chaptersRead volumesRead
        statuses { status count }
        genres(limit: 5, sort: COUNT_DESC) { genre count }
        tags(limit: 5, sort: COUNT_DESC) { tag { name } count }
      }
    }
  }
}
"""

SEIYUU_QUERY = """
query ($id: Int, $search: String, $perPage: Int) {
  Staff(id: $id, search: $search) {
    id
    siteUrl
    name { full native }
    image { large }
    characters(perPage: $perPage, sort: FAVOURITES_DESC) {
      nodes { id siteUrl name { full } image { large } }
    }
  }
}
"""

MINIMAL_ANIME_QUERY = """
query ($id: Int, $search: String) {
  Media(type: ANIME, id: $id, search: $search) {
    id
    coverImage { extraLarge }
    title { romaji english }
    nextAiringEpisode { airingAt timeUntilAiring episode }
  }
}
"""

RANDOM_PAGE_QUERY = """
query ($page: Int, $perPage: Int, $type: MediaType) {
  Page(page: $page, perPage: $perPage) {
    pageInfo { hasNextPage }
    media(type: $type, isAdult: false) {
      id
      siteUrl
      title { romaji english }
      description(asHtml: false)
      format
      genres
      coverImage { extraLarge }
    }
  }
}
"""


def _id_or_search(search: str | int, *, search_name: str = "search") -> dict[str, Any]:
    text = str(search).strip()
    if text.isdigit():
        return {"id": int(text)}
    return {search_name: text}


def preferred_title(title: dict[str, Any] | None, fallback: str = "nothing") -> str:
    title = title or {}
    return str(title.get("english") or title.get("romaji") or fallback)


class AniListClient:
    """GraphQL query builders over a CachedFetcher.

    The cache key is the JSON body sent to AniList, so two commands asking for
    the same query and variables share one cache row.
    """

    def __init__(
        self,
        *,
        fetcher: CachedFetcher,
        ttl_seconds: int,
        random_ttl_seconds: int,
        post_func: Callable[[dict[str, Any]], Awaitable[str]] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.ttl_seconds = int(ttl_seconds)
        self.random_ttl_seconds = int(random_ttl_seconds)
        self.post_func = post_func or (lambda payload: post_json_text(ANILIST_URL, payload))
        self.rng = rng or random.Random()

    @staticmethod
    def _payload(query: str, variables: dict[str, Any]) -> dict[str, Any]:
        return {"query": query, "variables": variables}

    @staticmethod
    def _unwrap(text: str) -> dict[str, Any]:
        body = parse_json_text(text, source="AniList")
        if not isinstance(body, dict):
            raise UpstreamError("AniList returned a non-object body")
        errors = body.get("errors") or []
        data = body.get("data")
        # AniList answers a not-found lookup with errors and {"Media": null}.
        if not data or (errors and not any(data.values())):
            message = "; ".join(str(e.get("message") or e) for e in errors if isinstance(e, dict)) or "no data"
            raise UpstreamError(f"AniList: {message}")
        return data

    async def request(self, query: str, variables: dict[str, Any], *, always_bypass: bool = False) -> dict[str, Any]:
        payload = self._payload(query, variables)

        async def do_fetch() -> str:
            text = await self.post_func(payload)
            # Only bodies that carry data are worth caching.
            self._unwrap(text)
            return text

        text = await self.fetcher.fetch(payload, self.ttl_seconds, always_bypass, do_fetch)
        return self._unwrap(text)

    async def media(self, media_type: str, search: str | int) -> dict[str, Any]:
        media_type = (media_type or "anime").strip().lower()
        variables = _id_or_search(search)
        variables["type"] = "MANGA" if media_type in {"manga", "ln"} else "ANIME"
        if media_type == "manga":
            variables["format_not"] = "NOVEL"
        elif media_type == "ln":
            variables["format"] = "NOVEL"
        data = await self.request(MEDIA_QUERY, variables)
        return data["Media"]

    async def character(self, search: str | int) -> dict[str, Any]:
        return (await self.request(CHARACTER_QUERY, _id_or_search(search)))["Character"]

    async def staff(self, search: str | int) -> dict[str, Any]:
        return (await self.request(STAFF_QUERY, _id_or_search(search)))["Staff"]

    async def seiyuu(self, search: str | int) -> dict[str, Any]:
        variables = _id_or_search(search)
        variables["perPage"] = SEIYUU_CHARACTERS
        return (await self.request(SEIYUU_QUERY, variables))["Staff"]

    async def studio(self, search: str | int) -> dict[str, Any]:
        return (await self.request(STUDIO_QUERY, _id_or_search(search)))["Studio"]

    async def user(self, name: str | int) -> dict[str, Any]:
        return (await self.request(USER_QUERY, _id_or_search(name, search_name="name")))["User"]

    async def minimal_anime(self, search: str | int, *, always_bypass: bool = True) -> dict[str, Any]:
        data = await self.request(MINIMAL_ANIME_QUERY, _id_or_search(search), always_bypass=always_bypass)
        return data["Media"]

    async def next_occurrence(self, subject_id: str) -> NextOccurrence | None:
        media = await self.minimal_anime(subject_id)
        airing = media.get("nextAiringEpisode")
        if not airing or airing.get("airingAt") is None:
            return None
        return NextOccurrence(
            fire_at=int(airing["airingAt"]),
            episode_or_sequence=str(airing.get("episode") or 0),
            display_name=preferred_title(media.get("title")),
        )

    async def _fetch_random_page(self, media_type: str, page: int) -> tuple[str, bool]:
        payload = self._payload(
            RANDOM_PAGE_QUERY,
            {"page": int(page), "perPage": RANDOM_PER_PAGE, "type": media_type.upper()},
        )
        text = await self.post_func(payload)
        data = self._unwrap(text)
        page_info = (data.get("Page") or {}).get("pageInfo") or {}
        return text, bool(page_info.get("hasNextPage"))

    async def refresh_random_cursor(self, media_type: str, *, ttl_seconds: int | None = None) -> str:
        media_type = media_type.strip().lower()
        if media_type not in MEDIA_TYPES:
            raise ValueError(f"Unknown random media type: {media_type}")
        ttl = self.random_ttl_seconds if ttl_seconds is None else int(ttl_seconds)
        return await self.fetcher.fetch_page(
            media_type,
            ttl,
            lambda page: self._fetch_random_page(media_type, page),
        )

    async def random_media(self, media_type: str) -> dict[str, Any] | None:
        media_type = media_type.strip().lower()
        await self.refresh_random_cursor(media_type)
        last_page = await self.fetcher.peek_page(media_type) or 1
        page = self.rng.randint(1, max(1, int(last_page)))
        data = await self.request(
            RANDOM_PAGE_QUERY,
            {"page": page, "perPage": RANDOM_PER_PAGE, "type": media_type.upper()},
        )
        items = (data.get("Page") or {}).get("media") or []
        if not items:
            return None
        return self.rng.choice(items)
