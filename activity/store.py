from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class ActivityRecord:
    subject_id: str
    owner_id: str
    fire_at: int
    notify_target: str
    episode_or_sequence: str = ""
    display_name: str = ""
    delay_seconds: int = 0
    image: str = ""


_COLUMNS = (
    "subject_id, owner_id, fire_at, notify_target, episode_or_sequence, "
    "display_name, delay_seconds, image"
)


def _row_to_record(row: tuple[Any, ...] | None) -> ActivityRecord | None:
    if row is None:
        return None
    return ActivityRecord(
        subject_id=str(row[0]),
        owner_id=str(row[1]),
        fire_at=int(row[2]),
        notify_target=str(row[3] or ""),
        episode_or_sequence=str(row[4] or ""),
        display_name=str(row[5] or ""),
        delay_seconds=int(row[6] or 0),
        image=str(row[7] or ""),
    )


def fetch_due_activities_sync(conn: sqlite3.Connection, now: int) -> list[ActivityRecord]:
    cur = conn.cursor()
    cur.execute(f"SELECT {_COLUMNS} FROM activity_data WHERE fire_at = ?", (int(now),))
    return [r for r in (_row_to_record(row) for row in cur.fetchall()) if r is not None]


def fetch_activity_sync(conn: sqlite3.Connection, *, subject_id: str, owner_id: str) -> ActivityRecord | None:
    cur = conn.cursor()
    cur.execute(
        f"SELECT {_COLUMNS} FROM activity_data WHERE subject_id = ? AND owner_id = ? LIMIT 1",
        (str(subject_id), str(owner_id)),
    )
    return _row_to_record(cur.fetchone())


def list_activities_by_owner_sync(conn: sqlite3.Connection, owner_id: str) -> list[ActivityRecord]:
    cur = conn.cursor()
    cur.execute(
        f"SELECT {_COLUMNS} FROM activity_data WHERE owner_id = ? ORDER BY fire_at ASC",
        (str(owner_id),),
    )
    return [r for r in (_row_to_record(row) for row in cur.fetchall()) if r is not None]


def upsert_activity_sync(conn: sqlite3.Connection, record: ActivityRecord) -> None:
    conn.execute(
        f"""
        INSERT INTO activity_data ({_COLUMNS})
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(subject_id, owner_id) DO UPDATE SET
            fire_at=excluded.fire_at,
            notify_target=excluded.notify_target,
            episode_or_sequence=excluded.episode_or_sequence,
            display_name=excluded.display_name,
            delay_seconds=excluded.delay_seconds,
            image=excluded.image
        """,
        (
            str(record.subject_id),
            str(record.owner_id),
            int(record.fire_at),
            str(record.notify_target),
            str(record.episode_or_sequence),
            str(record.display_name),
            max(0, int(record.delay_seconds)),
            str(record.image),
        ),
    )
    conn.commit()


def delete_activity_sync(conn: sqlite3.Connection, *, subject_id: str, owner_id: str) -> bool:
    cur = conn.cursor()
    cur.execute(
        "DELETE FROM activity_data WHERE subject_id = ? AND owner_id = ?",
        (str(subject_id), str(owner_id)),
    )
    conn.commit()
    return cur.rowcount > 0
