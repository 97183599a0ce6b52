from __future__ import annotations

import asyncio

from discord.ext import commands
from clients.http import UpstreamError
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.commands.command_deps import module_on
from misc.embeds import steam_embed
from settings.store import get_guild_lang_sync


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    if deps.steam is None:
        return

    steam = deps.steam

    @bot.command(name="steam")
    async def cmd_steam(ctx: commands.Context, *, search: str = ""):
        if not await module_on(gates, ctx, "game"):
            return
        search = (search or "").strip()
        if not search:
            await ctx.send("Usage: !steam <game name or app id>")
            return
        guild_id = getattr(ctx.guild, "id", None)
        async with deps.db_lock:
            lang = await asyncio.to_thread(get_guild_lang_sync, deps.db_conn, guild_id)
        try:
            app_id = await steam.resolve_app_id(search)
            if app_id is None:
                await ctx.send(f"No Steam game found for `{search}`.")
                return
            game = await steam.app_details(app_id, lang)
        except UpstreamError as e:
            print(f"[Steam] lookup failed search={search!r}: {e}")
            await ctx.send(f"No Steam game found for `{search}`.")
            return
        await ctx.send(embed=steam_embed(game))
