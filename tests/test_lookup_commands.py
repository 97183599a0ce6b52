from __future__ import annotations

import asyncio
import contextlib
import os
import sqlite3
import unittest
from types import SimpleNamespace

try:
    import discord
    from discord.ext import commands
except ModuleNotFoundError:
    discord = None
    commands = None

from clients.http import UpstreamError
from db.migrate import apply_sqlite_migrations
from settings.store import set_registered_user_sync

if commands is not None:
    from misc.commands.command_deps import CommandDeps
    from misc.commands.command_deps import CommandGates
    from misc.commands.commands_ai import register as register_ai
    from misc.commands.commands_anilist import register as register_anilist


def _migrations_dir() -> str:
    return os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations")


class FakeChannel:
    def __init__(self):
        self.sent: list[str] = []

    async def send(self, text):
        self.sent.append(text)


class FakeAttachment:
    def __init__(self, filename: str, content_type: str = "audio/mpeg"):
        self.filename = filename
        self.content_type = content_type

    async def read(self) -> bytes:
        return b"\x00\x01"


class FakeCtx:
    def __init__(self, attachments=None):
        self.channel = FakeChannel()
        self.author = SimpleNamespace(id=99)
        self.guild = SimpleNamespace(id=7)
        self.message = SimpleNamespace(attachments=list(attachments or []))
        self.sent: list[str] = []
        self.embeds: list = []

    async def send(self, text=None, **kwargs):
        if text is not None:
            self.sent.append(text)
        if "embed" in kwargs:
            self.embeds.append(kwargs["embed"])

    @contextlib.asynccontextmanager
    async def typing(self):
        yield


class StubAniList:
    def __init__(self, users=None, staff=None):
        self.users = users or {}
        self.staff = staff
        self.user_calls: list[str] = []

    async def user(self, name):
        self.user_calls.append(name)
        if name not in self.users:
            raise UpstreamError("AniList: Not Found.")
        return self.users[name]

    async def seiyuu(self, search):
        return self.staff


class StubChat:
    def __init__(self):
        self.translations: list[tuple[str, str]] = []

    async def transcribe(self, data, filename):
        return "good morning"

    async def translate(self, text, lang):
        self.translations.append((text, lang))
        return "guten Morgen"


def _stats_user(name: str, *, completed: int, chapters: int, minutes: int) -> dict:
    return {
        "name": name,
        "siteUrl": f"https://anilist.co/user/{name}",
        "statistics": {
            "anime": {"count": completed, "minutesWatched": minutes, "statuses": [{"status": "COMPLETED", "count": completed}]},
            "manga": {"count": 0, "chaptersRead": chapters, "statuses": []},
        },
    }


@unittest.skipIf(commands is None, "discord.py not installed")
class LookupCommandTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.conn = sqlite3.connect(":memory:", check_same_thread=False)
        apply_sqlite_migrations(self.conn, _migrations_dir())
        self.lock = asyncio.Lock()

    async def asyncTearDown(self):
        self.conn.close()

    def _bot(self, *, anilist=None, chat=None):
        async def send_chunked(channel, text):
            await channel.send(text)

        bot = commands.Bot(command_prefix="!", intents=discord.Intents.none())
        deps = CommandDeps(
            db_lock=self.lock,
            db_conn=self.conn,
            send_chunked=send_chunked,
            anilist=anilist,
            chat=chat,
        )
        gates = CommandGates()
        register_anilist(bot, deps=deps, gates=gates)
        register_ai(bot, deps=deps, gates=gates)
        return bot

    async def test_level_falls_back_to_registered_user(self):
        anilist = StubAniList(users={"Alice": _stats_user("Alice", completed=10, chapters=5, minutes=20)})
        set_registered_user_sync(self.conn, 99, "Alice")
        ctx = FakeCtx()

        await self._bot(anilist=anilist).get_command("level").callback(ctx, name="")

        self.assertEqual(anilist.user_calls, ["Alice"])
        # 8 * 10 + 2 * 5 + 0.5 * 20 = 100 XP, exactly level 1.
        self.assertTrue(ctx.embeds[0].description.startswith("Level 1 (100 XP)"))

    async def test_level_without_name_or_registration_prints_usage(self):
        ctx = FakeCtx()
        await self._bot(anilist=StubAniList()).get_command("level").callback(ctx, name="")
        self.assertIn("Usage: !level", ctx.sent[-1])

    async def test_compare_two_users(self):
        anilist = StubAniList(
            users={
                "Alice": _stats_user("Alice", completed=10, chapters=5, minutes=20),
                "Bob": _stats_user("Bob", completed=3, chapters=5, minutes=20),
            }
        )
        ctx = FakeCtx()

        await self._bot(anilist=anilist).get_command("compare").callback(ctx, "Alice", "Bob")

        self.assertEqual(ctx.embeds[0].title, "Alice vs Bob")
        self.assertIn("Alice has more anime than Bob.", ctx.embeds[0].description)

    async def test_compare_unknown_user_is_reported(self):
        anilist = StubAniList(users={"Alice": _stats_user("Alice", completed=1, chapters=0, minutes=0)})
        ctx = FakeCtx()

        await self._bot(anilist=anilist).get_command("compare").callback(ctx, "Alice", "Nobody")

        self.assertEqual(ctx.embeds, [])
        self.assertIn("Could not find both", ctx.sent[-1])

    async def test_seiyuu_lists_voiced_characters(self):
        staff = {
            "name": {"full": "Kana Hanazawa"},
            "siteUrl": "https://anilist.co/staff/95185",
            "characters": {
                "nodes": [
                    {"name": {"full": "Nadeko Sengoku"}, "siteUrl": "https://anilist.co/character/1", "image": {"large": "https://img.test/n.png"}}
                ]
            },
        }
        ctx = FakeCtx()

        await self._bot(anilist=StubAniList(staff=staff)).get_command("seiyuu").callback(ctx, search="Kana Hanazawa")

        self.assertIn("Nadeko Sengoku", ctx.embeds[0].description)
        self.assertEqual(ctx.embeds[0].image.url, "https://img.test/n.png")

    async def test_translation_translates_transcript_into_requested_language(self):
        chat = StubChat()
        ctx = FakeCtx([FakeAttachment("clip.mp3")])

        await self._bot(chat=chat).get_command("translation").callback(ctx, "de")

        self.assertEqual(chat.translations, [("good morning", "de")])
        self.assertEqual(ctx.channel.sent, ["guten Morgen"])

    async def test_translation_to_english_returns_transcript(self):
        chat = StubChat()
        ctx = FakeCtx([FakeAttachment("clip.ogg", content_type="audio/ogg")])

        await self._bot(chat=chat).get_command("translation").callback(ctx)

        self.assertEqual(chat.translations, [])
        self.assertEqual(ctx.channel.sent, ["good morning"])

    async def test_translation_rejects_unsupported_extension(self):
        chat = StubChat()
        ctx = FakeCtx([FakeAttachment("clip.flac", content_type="audio/flac")])

        await self._bot(chat=chat).get_command("translation").callback(ctx, "de")

        self.assertIn("Supported files", ctx.sent[-1])
        self.assertEqual(ctx.channel.sent, [])


if __name__ == "__main__":
    unittest.main()
