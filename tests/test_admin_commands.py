from __future__ import annotations

import asyncio
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

from db.migrate import apply_sqlite_migrations
from settings.store import get_guild_lang_sync
from settings.store import module_enabled_sync

if commands is not None:
    from misc.commands.command_deps import CommandDeps
    from misc.commands.command_deps import CommandGates
    from misc.commands.commands_admin import register as register_admin
    from misc.commands.commands_anime import register as register_anime
    from misc.commands.commands_game import register as register_game


def _migrations_dir() -> str:
    return os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations")


class FakeCtx:
    def __init__(self):
        self.channel = SimpleNamespace(id=1)
        self.author = SimpleNamespace(id=2)
        self.guild = SimpleNamespace(id=7)
        self.sent: list[str] = []
        self.embeds: list = []

    async def send(self, text=None, **kwargs):
        if text is not None:
            self.sent.append(text)
        if "embed" in kwargs:
            self.embeds.append(kwargs["embed"])


class StubSteam:
    def __init__(self):
        self.langs: list[str] = []

    async def resolve_app_id(self, search):
        return 620

    async def app_details(self, app_id, lang="en"):
        self.langs.append(lang)
        return {"name": "Portal 2", "store_url": "https://store.steampowered.com/app/620"}


@unittest.skipIf(commands is None, "discord.py not installed")
class AdminCommandTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.conn = sqlite3.connect(":memory:", check_same_thread=False)
        apply_sqlite_migrations(self.conn, _migrations_dir())
        self.steam = StubSteam()
        self.images: list[tuple[str, bool]] = []

        async def waifu(category, *, nsfw=False):
            self.images.append((category, nsfw))
            return "https://i.waifu.pics/x.png"

        self.bot = commands.Bot(command_prefix="!", intents=discord.Intents.none())
        deps = CommandDeps(db_lock=asyncio.Lock(), db_conn=self.conn, steam=self.steam, waifu_image_func=waifu)
        gates = CommandGates(user_can_manage_guild=lambda ctx: True, channel_is_nsfw=lambda channel: False)
        register_admin(self.bot, deps=deps, gates=gates)
        register_game(self.bot, deps=deps, gates=gates)
        register_anime(self.bot, deps=deps, gates=gates)

    async def asyncTearDown(self):
        self.conn.close()

    async def test_lang_is_stored_and_used_by_steam(self):
        ctx = FakeCtx()
        await self.bot.get_command("lang").callback(ctx, code="de")
        self.assertEqual(get_guild_lang_sync(self.conn, 7), "de")

        ctx = FakeCtx()
        await self.bot.get_command("steam").callback(ctx, search="portal 2")
        self.assertEqual(self.steam.langs, ["de"])
        self.assertEqual(len(ctx.embeds), 1)

    async def test_unknown_lang_is_rejected(self):
        ctx = FakeCtx()
        await self.bot.get_command("lang").callback(ctx, code="klingon")
        self.assertIn("Usage", ctx.sent[-1])
        self.assertEqual(get_guild_lang_sync(self.conn, 7), "en")

    async def test_module_toggle_and_status(self):
        ctx = FakeCtx()
        await self.bot.get_command("module").callback(ctx, name="game", state="off")
        self.assertFalse(module_enabled_sync(self.conn, 7, "game"))

        ctx = FakeCtx()
        await self.bot.get_command("module.status").callback(ctx)
        self.assertIn("- game: off", ctx.sent[-1])
        self.assertIn("- ai: on", ctx.sent[-1])

    async def test_nsfw_images_need_nsfw_channel(self):
        ctx = FakeCtx()
        await self.bot.get_command("waifu.nsfw").callback(ctx, category="waifu")
        self.assertIn("NSFW channels", ctx.sent[-1])
        self.assertEqual(self.images, [])

        ctx = FakeCtx()
        await self.bot.get_command("waifu").callback(ctx, category="neko")
        self.assertEqual(self.images, [("neko", False)])
        self.assertEqual(len(ctx.embeds), 1)


if __name__ == "__main__":
    unittest.main()
