from __future__ import annotations

import asyncio

import discord

from settings.store import module_enabled_sync


def user_can_manage_guild(ctx) -> bool:
    if getattr(ctx, "guild", None) is None:
        return False
    perms = getattr(ctx.author, "guild_permissions", None)
    return bool(perms and (perms.manage_guild or perms.administrator))


def channel_is_nsfw(channel) -> bool:
    if isinstance(channel, discord.DMChannel):
        return False
    is_nsfw = getattr(channel, "is_nsfw", None)
    if callable(is_nsfw):
        return bool(is_nsfw())
    return bool(getattr(channel, "nsfw", False))


async def ensure_module_enabled(ctx, *, db_lock, db_conn, module: str) -> bool:
    guild_id = getattr(getattr(ctx, "guild", None), "id", None)
    async with db_lock:
        enabled = await asyncio.to_thread(module_enabled_sync, db_conn, guild_id, module)
    if not enabled:
        await ctx.send(f"Module {module} is disabled on this server.")
    return enabled
