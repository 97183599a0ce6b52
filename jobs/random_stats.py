from __future__ import annotations

import asyncio


async def advance_random_cursor(*, anilist, fetcher, media_type: str, max_steps: int = 50) -> int | None:
    """Walk the random-media cursor forward until AniList reports no next page."""
    last = await fetcher.peek_page(media_type)
    for _ in range(max(1, int(max_steps))):
        await anilist.refresh_random_cursor(media_type, ttl_seconds=0)
        current = await fetcher.peek_page(media_type)
        if current == last:
            break
        last = current
    return last


async def random_stats_loop(
    *,
    anilist,
    fetcher,
    media_types: tuple[str, ...] = ("anime", "manga"),
    interval_seconds: int = 86400,
    max_steps: int = 50,
) -> None:
    while True:
        for media_type in media_types:
            try:
                page = await advance_random_cursor(
                    anilist=anilist,
                    fetcher=fetcher,
                    media_type=media_type,
                    max_steps=max_steps,
                )
                print(f"[Random] cursor type={media_type} last_page={page}")
            except Exception as e:
                print(f"[Random] cursor refresh error type={media_type}: {e}")
        await asyncio.sleep(max(60, int(interval_seconds)))
