from __future__ import annotations

import asyncio

from discord.ext import commands
from misc.runtime_deps import RuntimeBootDeps


def start_background_loops(bot, *, boot: RuntimeBootDeps) -> list[str]:
    started: list[str] = []
    if boot.activity_enabled and not getattr(bot, "_activity_task", None):
        bot._activity_task = asyncio.create_task(boot.activity_loop_func())
        started.append("activity")
        print("[Activity] scheduler loop started")

    if boot.random_stats_enabled and not getattr(bot, "_random_stats_task", None):
        bot._random_stats_task = asyncio.create_task(boot.random_stats_loop_func())
        started.append("random_stats")
        print("[Random] cursor refresh loop started")
    return started


def register_runtime_events(
    bot: commands.Bot,
    *,
    boot: RuntimeBootDeps,
) -> None:
    @bot.event
    async def on_ready():
        print(f"Kasuki is online as {bot.user} (guilds={len(bot.guilds)})")
        start_background_loops(bot, boot=boot)

    @bot.event
    async def on_command_error(ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.CommandNotFound):
            return
        if isinstance(error, commands.NoPrivateMessage):
            await ctx.send("This command only works inside a server.")
            return
        if isinstance(error, (commands.BadArgument, commands.MissingRequiredArgument)):
            await ctx.send(f"Invalid arguments for `{boot.command_prefix}{ctx.command}`: {error}")
            return
        original = getattr(error, "original", error)
        print(f"[Command] {ctx.command} failed: {type(original).__name__}: {original}")
        await ctx.send(f"Error: {original}")
