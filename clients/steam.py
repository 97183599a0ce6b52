from __future__ import annotations

from typing import Any, Awaitable, Callable

from cache.service import CachedFetcher
from clients.http import UpstreamError
from clients.http import get_text
from clients.http import parse_json_text
from config.defaults import LANG_MAP


APP_LIST_URL = "https://api.steampowered.com/ISteamApps/GetAppList/v0002/"
APP_DETAILS_URL = "https://store.steampowered.com/api/appdetails/"
STORE_PAGE_URL = "https://store.steampowered.com/app/{app_id}"


class SteamClient:
    def __init__(
        self,
        *,
        fetcher: CachedFetcher,
        ttl_seconds: int,
        app_list_ttl_seconds: int,
        get_func: Callable[..., Awaitable[str]] | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.ttl_seconds = int(ttl_seconds)
        self.app_list_ttl_seconds = int(app_list_ttl_seconds)
        self.get_func = get_func or get_text

    async def app_list(self) -> dict[str, int]:
        request = {"url": APP_LIST_URL, "params": {"format": "json"}}
        text = await self.fetcher.fetch(
            request,
            self.app_list_ttl_seconds,
            False,
            lambda: self.get_func(APP_LIST_URL, params={"format": "json"}),
        )
        body = parse_json_text(text, source="Steam app list")
        apps = ((body or {}).get("applist") or {}).get("apps") or []
        out: dict[str, int] = {}
        for app in apps:
            name = str(app.get("name") or "").strip()
            if name and app.get("appid") is not None:
                out.setdefault(name.lower(), int(app["appid"]))
        return out

    async def resolve_app_id(self, search: str) -> int | None:
        text = (search or "").strip()
        if text.isdigit():
            return int(text)
        if not text:
            return None
        apps = await self.app_list()
        needle = text.lower()
        if needle in apps:
            return apps[needle]
        matches = sorted((name for name in apps if needle in name), key=len)
        return apps[matches[0]] if matches else None

    async def app_details(self, app_id: int, lang: str = "en") -> dict[str, Any]:
        lang = (lang or "en").strip().lower()
        params = {"cc": lang, "l": LANG_MAP.get(lang, "english"), "appids": str(int(app_id))}
        text = await self.fetcher.fetch(
            {"url": APP_DETAILS_URL, "params": params},
            self.ttl_seconds,
            False,
            lambda: self.get_func(APP_DETAILS_URL, params=params),
        )
        body = parse_json_text(text, source="Steam store")
        entry = (body or {}).get(str(int(app_id))) or {}
        if not entry.get("success"):
            raise UpstreamError(f"Steam has no store data for app {app_id}")
        data = entry.get("data") or {}
        data.setdefault("store_url", STORE_PAGE_URL.format(app_id=int(app_id)))
        return data
