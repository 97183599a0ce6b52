import os
import re
import sqlite3
import asyncio
import time
import discord
from discord.ext import commands
from openai import OpenAI
from activity.service import ActivityScheduler
from cache.service import CachedFetcher
from cache.store import count_request_cache_sync
from clients.anilist import AniListClient
from clients.chat import ChatClient
from clients.http import get_bytes
from clients.steam import SteamClient
from clients.waifu import random_image as waifu_random_image
from config.ai_config import load_ai_config
from config.defaults import DEFAULT_ACTIVITY_MAX_DELAY_SECONDS
from config.defaults import DEFAULT_CACHE_TTL_SECONDS
from config.defaults import DEFAULT_CHAT_TTL_SECONDS
from config.defaults import DEFAULT_COMMAND_PREFIX
from config.defaults import DEFAULT_DB_PATH
from config.defaults import DEFAULT_RANDOM_INITIAL_PAGE
from config.defaults import DEFAULT_RANDOM_STATS_INTERVAL_SECONDS
from config.defaults import DEFAULT_RANDOM_TTL_SECONDS
from config.defaults import DEFAULT_STEAM_APP_LIST_TTL_SECONDS
from db.migrate import apply_sqlite_migrations
from db.migrate import list_schema_migrations_sync
from jobs.activity import activity_loop as activity_loop_service
from jobs.random_stats import random_stats_loop as random_stats_loop_service
from misc.runtime_wiring import wire_bot_runtime
from notify.payload import build_activity_notification
from notify.webhook import WebhookNotifier

# =========================
# ENV
# =========================
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")

if not DISCORD_TOKEN:
    raise RuntimeError("Missing DISCORD_TOKEN env var")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)).strip())
    except ValueError:
        print(f"[CFG] invalid {name}; falling back to {default}")
        return default


def parse_id_set(raw: str | None) -> set[int]:
    if not raw:
        return set()
    out: set[int] = set()
    for tok in re.split(r"[\s,;]+", raw.strip()):
        if re.fullmatch(r"\d{8,22}", tok or ""):
            out.add(int(tok))
    return out


DB_PATH = os.getenv("KASUKI_DB_PATH", DEFAULT_DB_PATH)
COMMAND_PREFIX = os.getenv("KASUKI_COMMAND_PREFIX", DEFAULT_COMMAND_PREFIX).strip() or DEFAULT_COMMAND_PREFIX
CACHE_TTL_SECONDS = max(0, _env_int("KASUKI_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS))
ACTIVITY_ENABLED = os.getenv("KASUKI_ACTIVITY_ENABLED", "1").strip() == "1"
RANDOM_STATS_INTERVAL_SECONDS = max(
    60, _env_int("KASUKI_RANDOM_STATS_INTERVAL_SECONDS", DEFAULT_RANDOM_STATS_INTERVAL_SECONDS)
)
OWNER_USER_IDS = parse_id_set(os.getenv("KASUKI_OWNER_USER_IDS"))

AI_CONFIG, AI_CONFIG_WARNING = load_ai_config(os.getenv("KASUKI_CONFIG_PATH"))
if AI_CONFIG_WARNING:
    print(f"[CFG] {AI_CONFIG_WARNING}")

print(
    f"[CFG] db={DB_PATH} prefix={COMMAND_PREFIX!r} cache_ttl={CACHE_TTL_SECONDS}s "
    f"activity={'on' if ACTIVITY_ENABLED else 'off'} "
    f"random_interval={RANDOM_STATS_INTERVAL_SECONDS}s owners={len(OWNER_USER_IDS)} "
    f"ai_question={'on' if AI_CONFIG.question.configured else 'off'} "
    f"ai_image={'on' if AI_CONFIG.image.configured else 'off'} "
    f"ai_transcription={'on' if AI_CONFIG.transcription.configured else 'off'}"
)


DISCORD_MAX_MESSAGE_LEN = 1900  # keep under 2000 hard limit

def chunk_text(text: str, limit: int = DISCORD_MAX_MESSAGE_LEN) -> list[str]:
    text = text or ""
    if len(text) <= limit:
        return [text]

    chunks = []
    remaining = text

    while len(remaining) > limit:
        # Prefer splitting on paragraph, then newline, then space
        split_at = remaining.rfind("\n\n", 0, limit)
        if split_at == -1:
            split_at = remaining.rfind("\n", 0, limit)
        if split_at == -1:
            split_at = remaining.rfind(" ", 0, limit)
        if split_at == -1:
            split_at = limit

        chunk = remaining[:split_at].strip()
        if chunk:
            chunks.append(chunk)

        remaining = remaining[split_at:].strip()

    if remaining:
        chunks.append(remaining)

    return chunks


async def send_chunked(channel: discord.abc.Messageable, text: str) -> None:
    for part in chunk_text(text, DISCORD_MAX_MESSAGE_LEN):
        await channel.send(part)


def user_is_owner(user: discord.abc.User) -> bool:
    uid = int(getattr(user, "id", 0) or 0)
    return bool(uid and uid in OWNER_USER_IDS)


# =========================
# SQLITE
# =========================
def init_db(db_path: str) -> sqlite3.Connection:
    # check_same_thread=False because discord.py event loop + to_thread usage
    conn = sqlite3.connect(db_path, check_same_thread=False)
    cur = conn.cursor()

    cur.execute("PRAGMA journal_mode=WAL;")
    cur.execute("PRAGMA synchronous=NORMAL;")
    repo_root = os.path.dirname(os.path.abspath(__file__))
    migrations_dir = os.path.join(repo_root, "migrations")
    applied = apply_sqlite_migrations(conn, migrations_dir)
    if applied:
        print(f"[DB] applied migrations: {', '.join(applied)}")

    rows = list_schema_migrations_sync(conn, limit=1)
    print(f"[DB] ready path={db_path} schema={rows[0][0] if rows else 'none'}")
    return conn


db_conn = init_db(DB_PATH)
db_lock = asyncio.Lock()

# =========================
# CLIENTS
# =========================
fetcher = CachedFetcher(
    db_lock=db_lock,
    db_conn=db_conn,
    initial_page=DEFAULT_RANDOM_INITIAL_PAGE,
)
anilist = AniListClient(
    fetcher=fetcher,
    ttl_seconds=CACHE_TTL_SECONDS,
    random_ttl_seconds=DEFAULT_RANDOM_TTL_SECONDS,
)
steam = SteamClient(
    fetcher=fetcher,
    ttl_seconds=CACHE_TTL_SECONDS,
    app_list_ttl_seconds=DEFAULT_STEAM_APP_LIST_TTL_SECONDS,
)


def _openai_client(endpoint):
    if not endpoint.configured:
        return None
    return OpenAI(api_key=endpoint.api_key, base_url=endpoint.base_url or None)


chat = ChatClient(
    fetcher=fetcher,
    ttl_seconds=DEFAULT_CHAT_TTL_SECONDS,
    client=_openai_client(AI_CONFIG.question),
    model=AI_CONFIG.question.model,
    image_client=_openai_client(AI_CONFIG.image),
    image_model=AI_CONFIG.image.model,
    image_size=AI_CONFIG.image_size,
    image_quality=AI_CONFIG.image_quality,
    image_style=AI_CONFIG.image_style,
    transcription_client=_openai_client(AI_CONFIG.transcription),
    transcription_model=AI_CONFIG.transcription.model,
)

# =========================
# ACTIVITY
# =========================
scheduler = ActivityScheduler(
    db_lock=db_lock,
    db_conn=db_conn,
    notifier=WebhookNotifier(),
    fetch_next_occurrence=anilist.next_occurrence,
    format_payload=build_activity_notification,
    enabled=ACTIVITY_ENABLED,
)


async def activity_loop():
    await activity_loop_service(scheduler=scheduler)


async def random_stats_loop():
    await random_stats_loop_service(
        anilist=anilist,
        fetcher=fetcher,
        interval_seconds=RANDOM_STATS_INTERVAL_SECONDS,
    )


# =========================
# DISCORD BOT
# =========================
intents = discord.Intents.default()
intents.message_content = True

bot = commands.Bot(command_prefix=COMMAND_PREFIX, intents=intents)

wire_bot_runtime(
    bot,
    db_lock=db_lock,
    db_conn=db_conn,
    send_chunked=send_chunked,
    user_is_owner=user_is_owner,
    started_at=time.time(),
    anilist=anilist,
    steam=steam,
    chat=chat,
    waifu_image_func=waifu_random_image,
    get_bytes_func=get_bytes,
    list_schema_migrations_sync=list_schema_migrations_sync,
    count_request_cache_sync=count_request_cache_sync,
    max_activity_delay_seconds=DEFAULT_ACTIVITY_MAX_DELAY_SECONDS,
    command_prefix=COMMAND_PREFIX,
    activity_enabled=ACTIVITY_ENABLED,
    activity_loop_func=activity_loop,
    random_stats_enabled=True,
    random_stats_loop_func=random_stats_loop,
)


bot.run(DISCORD_TOKEN)
