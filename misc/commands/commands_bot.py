from __future__ import annotations

import asyncio
import time

from discord.ext import commands
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates


def _format_uptime(seconds: float) -> str:
    seconds = max(0, int(seconds))
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)
    if days:
        return f"{days}d {hours}h {minutes}m"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m {secs}s"


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    @bot.command(name="ping")
    async def cmd_ping(ctx: commands.Context):
        latency = getattr(bot, "latency", None)
        if latency is None or latency != latency:
            await ctx.send("Pong!")
            return
        await ctx.send(f"Pong! {round(latency * 1000)} ms")

    @bot.command(name="info")
    async def cmd_info(ctx: commands.Context):
        lines = ["Kasuki"]
        if deps.started_at:
            lines.append(f"uptime: {_format_uptime(time.time() - deps.started_at)}")
        lines.append(f"servers: {len(getattr(bot, 'guilds', []) or [])}")
        if deps.count_request_cache_sync is not None:
            async with deps.db_lock:
                cached = await asyncio.to_thread(deps.count_request_cache_sync, deps.db_conn)
            lines.append(f"cached requests: {cached}")
        if gates.user_is_owner(ctx.author) and deps.list_schema_migrations_sync is not None:
            async with deps.db_lock:
                rows = await asyncio.to_thread(deps.list_schema_migrations_sync, deps.db_conn, 1)
            if rows:
                version, name, _applied = rows[0]
                lines.append(f"schema: {version} ({name})")
        await ctx.send("\n".join(lines))
