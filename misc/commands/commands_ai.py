from __future__ import annotations

from discord.ext import commands
from clients.chat import AiModuleNotConfigured
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.commands.command_deps import module_on
from misc.embeds import image_embed

TRANSCRIBE_EXTENSIONS = ("mp3", "mp4", "mpeg", "mpga", "m4a", "wav", "webm", "ogg")


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    if deps.chat is None:
        return

    chat = deps.chat

    @bot.command(name="ask")
    async def cmd_ask(ctx: commands.Context, *, prompt: str = ""):
        if not await module_on(gates, ctx, "ai"):
            return
        prompt = (prompt or "").strip()
        if not prompt:
            await ctx.send("Usage: !ask <question>")
            return
        try:
            async with ctx.typing():
                answer = await chat.ask(prompt)
        except AiModuleNotConfigured as e:
            await ctx.send(str(e))
            return
        except Exception as e:
            print(f"[Chat] ask failed: {e}")
            await ctx.send("The AI did not answer, try again later.")
            return
        await deps.send_chunked(ctx.channel, answer)

    @bot.command(name="image")
    async def cmd_image(ctx: commands.Context, *, prompt: str = ""):
        if not await module_on(gates, ctx, "ai"):
            return
        prompt = (prompt or "").strip()
        if not prompt:
            await ctx.send("Usage: !image <description>")
            return
        try:
            async with ctx.typing():
                url = await chat.generate_image(prompt)
        except AiModuleNotConfigured as e:
            await ctx.send(str(e))
            return
        except Exception as e:
            print(f"[Chat] image failed: {e}")
            await ctx.send("Image generation failed, try again later.")
            return
        await ctx.send(embed=image_embed(url, title=prompt[:256]))

    async def _media_attachment(ctx: commands.Context, verb: str):
        attachments = list(getattr(ctx.message, "attachments", None) or [])
        if not attachments:
            await ctx.send(f"Attach an audio or video file to {verb}.")
            return None
        attachment = attachments[0]
        content_type = str(getattr(attachment, "content_type", "") or "")
        extension = str(attachment.filename or "").rsplit(".", 1)[-1].lower()
        if content_type and not content_type.startswith(("audio/", "video/")):
            await ctx.send("The attachment must be an audio or video file.")
            return None
        if extension not in TRANSCRIBE_EXTENSIONS:
            await ctx.send(f"Supported files: {', '.join(TRANSCRIBE_EXTENSIONS)}.")
            return None
        return attachment

    @bot.command(name="transcript")
    async def cmd_transcript(ctx: commands.Context):
        if not await module_on(gates, ctx, "ai"):
            return
        attachment = await _media_attachment(ctx, "transcribe")
        if attachment is None:
            return
        try:
            data = await attachment.read()
            async with ctx.typing():
                text = await chat.transcribe(data, attachment.filename)
        except AiModuleNotConfigured as e:
            await ctx.send(str(e))
            return
        except Exception as e:
            print(f"[Chat] transcript failed file={attachment.filename!r}: {e}")
            await ctx.send("Transcription failed, try again later.")
            return
        await deps.send_chunked(ctx.channel, text or "(no speech detected)")

    @bot.command(name="translation")
    async def cmd_translation(ctx: commands.Context, lang: str = "en"):
        if not await module_on(gates, ctx, "ai"):
            return
        lang = (lang or "en").strip().lower()
        attachment = await _media_attachment(ctx, "translate")
        if attachment is None:
            return
        try:
            data = await attachment.read()
            async with ctx.typing():
                text = await chat.transcribe(data, attachment.filename)
                if text and lang != "en":
                    text = await chat.translate(text, lang)
        except AiModuleNotConfigured as e:
            await ctx.send(str(e))
            return
        except Exception as e:
            print(f"[Chat] translation failed file={attachment.filename!r} lang={lang}: {e}")
            await ctx.send("Translation failed, try again later.")
            return
        await deps.send_chunked(ctx.channel, text or "(no speech detected)")
