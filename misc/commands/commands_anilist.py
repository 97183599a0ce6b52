from __future__ import annotations

import asyncio

from discord.ext import commands
from clients.anilist_stats import compare_lines
from clients.anilist_stats import level_for_xp
from clients.anilist_stats import user_xp
from clients.http import UpstreamError
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.commands.command_deps import module_on
from misc.embeds import compare_embed
from misc.embeds import level_embed
from misc.embeds import media_embed
from misc.embeds import person_embed
from misc.embeds import seiyuu_embed
from misc.embeds import studio_embed
from misc.embeds import user_embed
from settings.store import get_registered_user_sync
from settings.store import set_registered_user_sync


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    if deps.anilist is None:
        return

    anilist = deps.anilist

    async def _lookup(ctx: commands.Context, label: str, search: str, fetch, render) -> None:
        if not await module_on(gates, ctx, "anilist"):
            return
        search = (search or "").strip()
        if not search:
            await ctx.send(f"Usage: !{label} <name or id>")
            return
        try:
            item = await fetch(search)
        except UpstreamError as e:
            print(f"[AniList] {label} lookup failed search={search!r}: {e}")
            await ctx.send(f"No {label} found for `{search}`.")
            return
        if not item:
            await ctx.send(f"No {label} found for `{search}`.")
            return
        await ctx.send(embed=render(item))

    @bot.command(name="anime")
    async def cmd_anime(ctx: commands.Context, *, search: str = ""):
        await _lookup(ctx, "anime", search, lambda s: anilist.media("anime", s), media_embed)

    @bot.command(name="manga")
    async def cmd_manga(ctx: commands.Context, *, search: str = ""):
        await _lookup(ctx, "manga", search, lambda s: anilist.media("manga", s), media_embed)

    @bot.command(name="ln")
    async def cmd_ln(ctx: commands.Context, *, search: str = ""):
        await _lookup(ctx, "ln", search, lambda s: anilist.media("ln", s), media_embed)

    @bot.command(name="character")
    async def cmd_character(ctx: commands.Context, *, search: str = ""):
        await _lookup(
            ctx,
            "character",
            search,
            anilist.character,
            lambda c: person_embed(c, extra={"Favourites": c.get("favourites")}),
        )

    @bot.command(name="staff")
    async def cmd_staff(ctx: commands.Context, *, search: str = ""):
        await _lookup(
            ctx,
            "staff",
            search,
            anilist.staff,
            lambda s: person_embed(s, extra={"Occupations": ", ".join(s.get("primaryOccupations") or [])}),
        )

    @bot.command(name="studio")
    async def cmd_studio(ctx: commands.Context, *, search: str = ""):
        await _lookup(ctx, "studio", search, anilist.studio, studio_embed)

    @bot.command(name="seiyuu")
    async def cmd_seiyuu(ctx: commands.Context, *, search: str = ""):
        await _lookup(ctx, "seiyuu", search, anilist.seiyuu, seiyuu_embed)

    async def _name_or_registered(ctx: commands.Context, name: str, label: str) -> str:
        name = (name or "").strip()
        if not name:
            async with deps.db_lock:
                name = await asyncio.to_thread(get_registered_user_sync, deps.db_conn, ctx.author.id) or ""
            if not name:
                await ctx.send(f"Usage: !{label} <anilist name> (or link yours with !register <anilist name>)")
        return name

    @bot.command(name="user")
    async def cmd_user(ctx: commands.Context, *, name: str = ""):
        name = await _name_or_registered(ctx, name, "user")
        if name:
            await _lookup(ctx, "user", name, anilist.user, user_embed)

    def _render_level(user):
        xp = user_xp(user)
        level, actual, span = level_for_xp(xp)
        return level_embed(user, xp, level, actual, span)

    @bot.command(name="level")
    async def cmd_level(ctx: commands.Context, *, name: str = ""):
        name = await _name_or_registered(ctx, name, "level")
        if name:
            await _lookup(ctx, "user", name, anilist.user, _render_level)

    @bot.command(name="compare")
    async def cmd_compare(ctx: commands.Context, first: str = "", second: str = ""):
        if not await module_on(gates, ctx, "anilist"):
            return
        first, second = (first or "").strip(), (second or "").strip()
        if not first or not second:
            await ctx.send("Usage: !compare <anilist name> <anilist name>")
            return
        try:
            user1, user2 = await asyncio.gather(anilist.user(first), anilist.user(second))
        except UpstreamError as e:
            print(f"[AniList] compare failed first={first!r} second={second!r}: {e}")
            await ctx.send(f"Could not find both `{first}` and `{second}` on AniList.")
            return
        await ctx.send(embed=compare_embed(user1, user2, compare_lines(user1, user2)))

    @bot.command(name="register")
    async def cmd_register(ctx: commands.Context, *, name: str = ""):
        if not await module_on(gates, ctx, "anilist"):
            return
        name = (name or "").strip()
        if not name:
            await ctx.send("Usage: !register <anilist name>")
            return
        try:
            user = await anilist.user(name)
        except UpstreamError as e:
            print(f"[AniList] register lookup failed name={name!r}: {e}")
            await ctx.send(f"No AniList user named `{name}`.")
            return
        username = str(user.get("name") or name)
        async with deps.db_lock:
            await asyncio.to_thread(set_registered_user_sync, deps.db_conn, ctx.author.id, username)
        await ctx.send(f"Linked your account to AniList user `{username}`.")

    @bot.command(name="random")
    async def cmd_random(ctx: commands.Context, media_type: str = "anime"):
        if not await module_on(gates, ctx, "anilist"):
            return
        media_type = (media_type or "anime").strip().lower()
        try:
            media = await anilist.random_media(media_type)
        except ValueError:
            await ctx.send("Usage: !random <anime|manga>")
            return
        except UpstreamError as e:
            print(f"[AniList] random failed type={media_type}: {e}")
            await ctx.send("AniList is not answering right now, try again later.")
            return
        if not media:
            await ctx.send(f"No random {media_type} available yet.")
            return
        await ctx.send(embed=media_embed(media))
