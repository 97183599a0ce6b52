from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Callable

from config.defaults import DEFAULT_ACTIVITY_MAX_DELAY_SECONDS


def _default_false(*args, **kwargs) -> bool:
    return False


@dataclass(frozen=True)
class CommandDeps:
    # Core/shared
    db_lock: Any = None
    db_conn: Any = None
    send_chunked: Callable | None = None
    started_at: float = 0.0

    # Upstream clients
    anilist: Any = None
    steam: Any = None
    chat: Any = None
    waifu_image_func: Callable | None = None
    get_bytes_func: Callable | None = None

    # Activity tracking
    activity_webhook_name: str = "Kasuki activity"
    max_activity_delay_seconds: int = DEFAULT_ACTIVITY_MAX_DELAY_SECONDS

    # Store functions
    list_schema_migrations_sync: Callable | None = None
    count_request_cache_sync: Callable | None = None


@dataclass(frozen=True)
class CommandGates:
    user_is_owner: Callable[[Any], bool] = _default_false
    user_can_manage_guild: Callable[[Any], bool] = _default_false
    channel_is_nsfw: Callable[[Any], bool] = _default_false
    ensure_module_enabled: Callable | None = None


async def module_on(gates: CommandGates, ctx, module: str) -> bool:
    if gates.ensure_module_enabled is None:
        return True
    return await gates.ensure_module_enabled(ctx, module)
