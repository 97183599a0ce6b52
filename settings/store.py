from __future__ import annotations

import sqlite3

from config.defaults import DEFAULT_LANG
from config.defaults import MODULES


def _module_column(module: str) -> str:
    name = (module or "").strip().lower()
    if name not in MODULES:
        raise ValueError(f"Unknown module: {module}")
    return f"{name}_module"


def get_guild_lang_sync(conn: sqlite3.Connection, guild_id: str | int | None) -> str:
    if guild_id is None:
        return DEFAULT_LANG
    cur = conn.cursor()
    cur.execute("SELECT lang FROM guild_lang WHERE guild_id = ? LIMIT 1", (str(guild_id),))
    row = cur.fetchone()
    return str(row[0]) if row and row[0] else DEFAULT_LANG


def set_guild_lang_sync(conn: sqlite3.Connection, guild_id: str | int, lang: str) -> None:
    conn.execute(
        """
        INSERT INTO guild_lang (guild_id, lang) VALUES (?, ?)
        ON CONFLICT(guild_id) DO UPDATE SET lang = excluded.lang
        """,
        (str(guild_id), (lang or DEFAULT_LANG).strip().lower()),
    )
    conn.commit()


def get_module_status_sync(conn: sqlite3.Connection, guild_id: str | int) -> dict[str, bool]:
    cols = ", ".join(_module_column(m) for m in MODULES)
    cur = conn.cursor()
    cur.execute(f"SELECT {cols} FROM module_activation WHERE guild_id = ? LIMIT 1", (str(guild_id),))
    row = cur.fetchone()
    if row is None:
        return {m: True for m in MODULES}
    return {m: bool(v) for m, v in zip(MODULES, row)}


def set_module_status_sync(conn: sqlite3.Connection, guild_id: str | int, module: str, enabled: bool) -> None:
    col = _module_column(module)
    conn.execute("INSERT OR IGNORE INTO module_activation (guild_id) VALUES (?)", (str(guild_id),))
    conn.execute(
        f"UPDATE module_activation SET {col} = ? WHERE guild_id = ?",
        (1 if enabled else 0, str(guild_id)),
    )
    conn.commit()


def module_enabled_sync(conn: sqlite3.Connection, guild_id: str | int | None, module: str) -> bool:
    # DMs have no guild row; every module is on there.
    if guild_id is None:
        return True
    return get_module_status_sync(conn, guild_id).get((module or "").strip().lower(), True)


def get_registered_user_sync(conn: sqlite3.Connection, user_id: str | int) -> str | None:
    cur = conn.cursor()
    cur.execute("SELECT anilist_username FROM registered_user WHERE user_id = ? LIMIT 1", (str(user_id),))
    row = cur.fetchone()
    return str(row[0]) if row and row[0] else None


def set_registered_user_sync(conn: sqlite3.Connection, user_id: str | int, anilist_username: str) -> None:
    conn.execute(
        """
        INSERT INTO registered_user (user_id, anilist_username) VALUES (?, ?)
        ON CONFLICT(user_id) DO UPDATE SET anilist_username = excluded.anilist_username
        """,
        (str(user_id), anilist_username.strip()),
    )
    conn.commit()
