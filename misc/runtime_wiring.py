from __future__ import annotations

from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.commands.commands_activity import register as register_activity
from misc.commands.commands_admin import register as register_admin
from misc.commands.commands_ai import register as register_ai
from misc.commands.commands_anilist import register as register_anilist
from misc.commands.commands_anime import register as register_anime
from misc.commands.commands_bot import register as register_bot
from misc.commands.commands_game import register as register_game
from misc.discord_gates import channel_is_nsfw
from misc.discord_gates import ensure_module_enabled
from misc.discord_gates import user_can_manage_guild
from misc.events_runtime import register_runtime_events
from misc.runtime_deps import RuntimeBootDeps


def wire_bot_runtime(
    bot,
    *,
    db_lock,
    db_conn,
    send_chunked,
    user_is_owner,
    started_at: float,
    anilist,
    steam,
    chat,
    waifu_image_func,
    get_bytes_func,
    list_schema_migrations_sync,
    count_request_cache_sync,
    max_activity_delay_seconds: int,
    command_prefix: str,
    activity_enabled: bool,
    activity_loop_func,
    random_stats_enabled: bool,
    random_stats_loop_func,
) -> None:
    async def module_gate(ctx, module: str) -> bool:
        return await ensure_module_enabled(ctx, db_lock=db_lock, db_conn=db_conn, module=module)

    command_deps = CommandDeps(
        db_lock=db_lock,
        db_conn=db_conn,
        send_chunked=send_chunked,
        started_at=started_at,
        anilist=anilist,
        steam=steam,
        chat=chat,
        waifu_image_func=waifu_image_func,
        get_bytes_func=get_bytes_func,
        max_activity_delay_seconds=max_activity_delay_seconds,
        list_schema_migrations_sync=list_schema_migrations_sync,
        count_request_cache_sync=count_request_cache_sync,
    )
    command_gates = CommandGates(
        user_is_owner=user_is_owner,
        user_can_manage_guild=user_can_manage_guild,
        channel_is_nsfw=channel_is_nsfw,
        ensure_module_enabled=module_gate,
    )

    register_anilist(bot, deps=command_deps, gates=command_gates)
    register_activity(bot, deps=command_deps, gates=command_gates)
    register_admin(bot, deps=command_deps, gates=command_gates)
    register_game(bot, deps=command_deps, gates=command_gates)
    register_ai(bot, deps=command_deps, gates=command_gates)
    register_anime(bot, deps=command_deps, gates=command_gates)
    register_bot(bot, deps=command_deps, gates=command_gates)

    register_runtime_events(
        bot,
        boot=RuntimeBootDeps(
            activity_enabled=activity_enabled,
            activity_loop_func=activity_loop_func,
            random_stats_enabled=random_stats_enabled,
            random_stats_loop_func=random_stats_loop_func,
            command_prefix=command_prefix,
        ),
    )
