from __future__ import annotations

from typing import Any, Awaitable, Callable

from clients.http import UpstreamError
from clients.http import get_json
from config.defaults import WAIFU_NSFW_CATEGORIES
from config.defaults import WAIFU_SFW_CATEGORIES


WAIFU_URL = "https://api.waifu.pics/{kind}/{category}"


async def random_image(
    category: str = "waifu",
    *,
    nsfw: bool = False,
    get_json_func: Callable[[str], Awaitable[Any]] | None = None,
) -> str:
    category = (category or "waifu").strip().lower()
    allowed = WAIFU_NSFW_CATEGORIES if nsfw else WAIFU_SFW_CATEGORIES
    if category not in allowed:
        raise ValueError(f"Unknown category `{category}`. Try: {', '.join(allowed)}")
    url = WAIFU_URL.format(kind="nsfw" if nsfw else "sfw", category=category)
    body = await (get_json_func or get_json)(url)
    image_url = (body or {}).get("url") if isinstance(body, dict) else None
    if not image_url:
        raise UpstreamError("waifu.pics returned no image")
    return str(image_url)
