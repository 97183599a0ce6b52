from __future__ import annotations

import aiohttp
import discord

from config.defaults import EMBED_COLOR
from notify.payload import ActivityNotification


class WebhookNotifier:
    """Posts activity notifications to a Discord webhook URL."""

    def __init__(self, *, color: int = EMBED_COLOR, timeout_seconds: float = 20.0) -> None:
        self.color = int(color)
        self.timeout_seconds = float(timeout_seconds)

    def build_embed(self, payload: ActivityNotification) -> discord.Embed:
        embed = discord.Embed(
            title=payload.title,
            description=payload.description,
            url=payload.url or None,
            color=self.color,
        )
        return embed

    async def send(self, notify_target: str, payload: ActivityNotification) -> None:
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            webhook = discord.Webhook.from_url(notify_target, session=session)
            edit_kwargs = {"name": payload.username}
            if payload.avatar:
                edit_kwargs["avatar"] = payload.avatar
            try:
                await webhook.edit(**edit_kwargs)
            except discord.HTTPException as e:
                print(f"[Webhook] edit failed webhook_id={webhook.id}: {e}")
                raise
            await webhook.send(embed=self.build_embed(payload))
        print(f"[Webhook] sent webhook_id={webhook.id} title={payload.title!r}")
