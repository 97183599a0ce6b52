from __future__ import annotations

import asyncio

from discord.ext import commands
from config.defaults import LANG_MAP
from config.defaults import MODULES
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from settings.store import get_module_status_sync
from settings.store import set_guild_lang_sync
from settings.store import set_module_status_sync

_ON = {"on", "enable", "enabled", "true", "1", "yes"}
_OFF = {"off", "disable", "disabled", "false", "0", "no"}


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    async def _ensure_manager(ctx: commands.Context) -> bool:
        if gates.user_can_manage_guild(ctx):
            return True
        await ctx.send("You need the Manage Server permission to change server settings.")
        return False

    @bot.command(name="lang")
    @commands.guild_only()
    async def cmd_lang(ctx: commands.Context, code: str = ""):
        if not await _ensure_manager(ctx):
            return
        code = (code or "").strip().lower()
        if code not in LANG_MAP:
            await ctx.send(f"Usage: !lang <code>. Known codes: {', '.join(sorted(LANG_MAP))}")
            return
        async with deps.db_lock:
            await asyncio.to_thread(set_guild_lang_sync, deps.db_conn, ctx.guild.id, code)
        await ctx.send(f"Server language set to `{code}`.")

    @bot.command(name="module")
    @commands.guild_only()
    async def cmd_module(ctx: commands.Context, name: str = "", state: str = ""):
        if not await _ensure_manager(ctx):
            return
        name = (name or "").strip().lower()
        state = (state or "").strip().lower()
        if name not in MODULES or state not in (_ON | _OFF):
            await ctx.send(f"Usage: !module <{'|'.join(MODULES)}> <on|off>")
            return
        enabled = state in _ON
        async with deps.db_lock:
            await asyncio.to_thread(set_module_status_sync, deps.db_conn, ctx.guild.id, name, enabled)
        await ctx.send(f"Module {name} is now {'enabled' if enabled else 'disabled'}.")

    @bot.command(name="module.status")
    @commands.guild_only()
    async def cmd_module_status(ctx: commands.Context):
        async with deps.db_lock:
            status = await asyncio.to_thread(get_module_status_sync, deps.db_conn, ctx.guild.id)
        lines = ["Modules:"] + [f"- {m}: {'on' if status.get(m, True) else 'off'}" for m in MODULES]
        await ctx.send("\n".join(lines))
