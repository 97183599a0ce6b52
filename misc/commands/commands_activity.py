from __future__ import annotations

import asyncio

import discord
from discord.ext import commands
from activity.store import ActivityRecord
from activity.store import delete_activity_sync
from activity.store import fetch_activity_sync
from activity.store import list_activities_by_owner_sync
from activity.store import upsert_activity_sync
from clients.anilist import preferred_title
from clients.http import UpstreamError
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.commands.command_deps import module_on
from notify.payload import encode_avatar


def _image_content_type(url: str) -> str:
    lowered = (url or "").lower().split("?", 1)[0]
    if lowered.endswith((".jpg", ".jpeg")):
        return "image/jpeg"
    if lowered.endswith(".gif"):
        return "image/gif"
    return "image/png"


async def get_or_create_webhook(channel, *, name: str, bot_user_id: int | None = None):
    existing = await channel.webhooks()
    for hook in existing:
        if hook.name == name or (bot_user_id and hook.user and hook.user.id == bot_user_id):
            if getattr(hook, "token", None):
                return hook
    return await channel.create_webhook(name=name, reason="Anime activity notifications")


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    if deps.anilist is None:
        return

    anilist = deps.anilist

    async def _ensure_manager(ctx: commands.Context) -> bool:
        if gates.user_can_manage_guild(ctx):
            return True
        await ctx.send("You need the Manage Server permission to change activity tracking.")
        return False

    async def _avatar_for(media: dict) -> str:
        cover = (media.get("coverImage") or {}).get("extraLarge")
        if not cover or deps.get_bytes_func is None:
            return ""
        try:
            data = await deps.get_bytes_func(cover)
        except UpstreamError as e:
            print(f"[Activity] cover download failed subject={media.get('id')}: {e}")
            return ""
        return encode_avatar(data, _image_content_type(cover))

    @bot.command(name="activity.add")
    @commands.guild_only()
    async def cmd_activity_add(ctx: commands.Context, anime: str = "", delay: int = 0):
        if not await module_on(gates, ctx, "anilist"):
            return
        if not await _ensure_manager(ctx):
            return
        anime = (anime or "").strip()
        if not anime:
            await ctx.send("Usage: !activity.add <anime id or \"name\"> [delay seconds]")
            return
        delay = max(0, min(int(delay or 0), int(deps.max_activity_delay_seconds)))

        try:
            media = await anilist.minimal_anime(anime)
        except UpstreamError as e:
            print(f"[Activity] lookup failed search={anime!r}: {e}")
            await ctx.send(f"No anime found for `{anime}`.")
            return

        subject_id = str(media.get("id"))
        owner_id = str(ctx.guild.id)
        title = preferred_title(media.get("title"))
        airing = media.get("nextAiringEpisode") or {}
        if airing.get("airingAt") is None:
            await ctx.send(f"`{title}` has no upcoming episode to track.")
            return

        async with deps.db_lock:
            existing = await asyncio.to_thread(
                fetch_activity_sync, deps.db_conn, subject_id=subject_id, owner_id=owner_id
            )
        if existing is not None:
            await ctx.send(f"`{title}` is already tracked on this server.")
            return

        try:
            webhook = await get_or_create_webhook(
                ctx.channel,
                name=deps.activity_webhook_name,
                bot_user_id=getattr(bot.user, "id", None),
            )
        except discord.HTTPException as e:
            print(f"[Activity] webhook setup failed channel={ctx.channel.id}: {e}")
            await ctx.send("I could not create a webhook here. Check my Manage Webhooks permission.")
            return

        record = ActivityRecord(
            subject_id=subject_id,
            owner_id=owner_id,
            fire_at=int(airing["airingAt"]),
            notify_target=str(webhook.url),
            episode_or_sequence=str(airing.get("episode") or 0),
            display_name=title,
            delay_seconds=delay,
            image=await _avatar_for(media),
        )
        async with deps.db_lock:
            await asyncio.to_thread(upsert_activity_sync, deps.db_conn, record)
        print(f"[Activity] tracking started subject={subject_id} owner={owner_id} fire_at={record.fire_at}")
        await ctx.send(
            f"Tracking `{title}` in this channel. Episode {record.episode_or_sequence} airs <t:{record.fire_at}:R>."
        )

    @bot.command(name="activity.delete")
    @commands.guild_only()
    async def cmd_activity_delete(ctx: commands.Context, anime_id: str = ""):
        if not await module_on(gates, ctx, "anilist"):
            return
        if not await _ensure_manager(ctx):
            return
        anime_id = (anime_id or "").strip()
        if not anime_id.isdigit():
            await ctx.send("Usage: !activity.delete <anime id>")
            return
        async with deps.db_lock:
            removed = await asyncio.to_thread(
                delete_activity_sync, deps.db_conn, subject_id=anime_id, owner_id=str(ctx.guild.id)
            )
        if removed:
            print(f"[Activity] tracking removed subject={anime_id} owner={ctx.guild.id}")
            await ctx.send(f"Stopped tracking anime {anime_id}.")
        else:
            await ctx.send(f"Anime {anime_id} is not tracked on this server.")

    @bot.command(name="activity.list")
    @commands.guild_only()
    async def cmd_activity_list(ctx: commands.Context):
        if not await module_on(gates, ctx, "anilist"):
            return
        async with deps.db_lock:
            rows = await asyncio.to_thread(list_activities_by_owner_sync, deps.db_conn, str(ctx.guild.id))
        if not rows:
            await ctx.send("No anime is tracked on this server.")
            return
        lines = [f"Tracked anime ({len(rows)}):"]
        for r in rows:
            delay = f" (+{r.delay_seconds}s)" if r.delay_seconds else ""
            lines.append(
                f"- {r.display_name} [{r.subject_id}] episode {r.episode_or_sequence} <t:{r.fire_at}:R>{delay}"
            )
        await deps.send_chunked(ctx.channel, "\n".join(lines))
