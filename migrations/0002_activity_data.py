from __future__ import annotations

import sqlite3


def upgrade(conn: sqlite3.Connection) -> None:
    cur = conn.cursor()
    # fire_at is stored as INTEGER so the due query compares numbers, not text.
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS activity_data (
            subject_id TEXT NOT NULL,
            owner_id TEXT NOT NULL,
            fire_at INTEGER NOT NULL,
            notify_target TEXT NOT NULL,
            episode_or_sequence TEXT NOT NULL DEFAULT '',
            display_name TEXT NOT NULL DEFAULT '',
            delay_seconds INTEGER NOT NULL DEFAULT 0,
            image TEXT NOT NULL DEFAULT '',
            PRIMARY KEY (subject_id, owner_id)
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_activity_data_fire_at ON activity_data(fire_at)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_activity_data_owner ON activity_data(owner_id)")
    conn.commit()
