from __future__ import annotations

from discord.ext import commands
from clients.http import UpstreamError
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.commands.command_deps import module_on
from misc.embeds import image_embed


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    if deps.waifu_image_func is None:
        return

    async def _send_image(ctx: commands.Context, category: str, *, nsfw: bool) -> None:
        if not await module_on(gates, ctx, "anime"):
            return
        if nsfw and not gates.channel_is_nsfw(ctx.channel):
            await ctx.send("This command only works in NSFW channels.")
            return
        try:
            url = await deps.waifu_image_func(category, nsfw=nsfw)
        except ValueError as e:
            await ctx.send(str(e))
            return
        except UpstreamError as e:
            print(f"[Anime] waifu image failed category={category!r} nsfw={nsfw}: {e}")
            await ctx.send("No image right now, try again later.")
            return
        await ctx.send(embed=image_embed(url))

    @bot.command(name="waifu")
    async def cmd_waifu(ctx: commands.Context, category: str = "waifu"):
        await _send_image(ctx, category, nsfw=False)

    @bot.command(name="waifu.nsfw")
    async def cmd_waifu_nsfw(ctx: commands.Context, category: str = "waifu"):
        await _send_image(ctx, category, nsfw=True)
