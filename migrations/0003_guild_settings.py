from __future__ import annotations

import sqlite3


def upgrade(conn: sqlite3.Connection) -> None:
    cur = conn.cursor()
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS guild_lang (
            guild_id TEXT PRIMARY KEY,
            lang TEXT NOT NULL
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS module_activation (
            guild_id TEXT PRIMARY KEY,
            ai_module INTEGER NOT NULL DEFAULT 1,
            anilist_module INTEGER NOT NULL DEFAULT 1,
            game_module INTEGER NOT NULL DEFAULT 1,
            anime_module INTEGER NOT NULL DEFAULT 1
        )
        """
    )
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS registered_user (
            user_id TEXT PRIMARY KEY,
            anilist_username TEXT NOT NULL
        )
        """
    )
    conn.commit()
