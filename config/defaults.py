from __future__ import annotations

DEFAULT_COMMAND_PREFIX = "!"
DEFAULT_DB_PATH = "kasuki.db"

# Request cache
DEFAULT_CACHE_TTL_SECONDS = 3 * 3600
DEFAULT_STEAM_APP_LIST_TTL_SECONDS = 24 * 3600
DEFAULT_CHAT_TTL_SECONDS = 24 * 3600
DEFAULT_RANDOM_TTL_SECONDS = 24 * 3600
DEFAULT_RANDOM_INITIAL_PAGE = 1
DEFAULT_RANDOM_STATS_INTERVAL_SECONDS = 24 * 3600

# Activity tracking
DEFAULT_ACTIVITY_MAX_DELAY_SECONDS = 24 * 3600
ACTIVITY_TITLE = "New episode"
ACTIVITY_DESCRIPTION = "Episode $ep$ of $anime$ just aired."
ACTIVITY_URL = "https://anilist.co/anime/$id$"
WEBHOOK_NAME_MAX_CHARS = 100

EMBED_COLOR = 0xFAB1ED
DEFAULT_LANG = "en"

# Guild language code -> Steam store language name
LANG_MAP = {
    "en": "english",
    "fr": "french",
    "de": "german",
    "es": "spanish",
    "it": "italian",
    "ja": "japanese",
    "ko": "koreana",
    "pt": "portuguese",
    "ru": "russian",
    "zh": "schinese",
}

MODULES = ("ai", "anilist", "game", "anime")

WAIFU_SFW_CATEGORIES = (
    "waifu", "neko", "shinobu", "megumin", "bully", "cuddle", "cry", "hug", "awoo", "kiss",
    "lick", "pat", "smug", "bonk", "yeet", "blush", "smile", "wave", "highfive", "handhold",
    "nom", "bite", "glomp", "slap", "kill", "kick", "happy", "wink", "poke", "dance", "cringe",
)
WAIFU_NSFW_CATEGORIES = ("waifu", "neko", "trap", "blowjob")

DEFAULT_AI_QUESTION_MODEL = "gpt-4o-mini"
DEFAULT_AI_IMAGE_MODEL = "dall-e-3"
DEFAULT_AI_IMAGE_SIZE = "1024x1024"
DEFAULT_AI_IMAGE_QUALITY = "standard"
DEFAULT_AI_IMAGE_STYLE = "vivid"
DEFAULT_AI_TRANSCRIPTION_MODEL = "whisper-1"
