from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from activity.store import ActivityRecord
from activity.store import delete_activity_sync
from activity.store import fetch_due_activities_sync
from activity.store import upsert_activity_sync


@dataclass(slots=True)
class NextOccurrence:
    fire_at: int
    episode_or_sequence: str
    display_name: str


class ActivityScheduler:
    """Fires per-row notifications for tracked subjects whose fire_at is now.

    Each due row runs in its own task: optional delay, notify, then refresh.
    A failed notification skips the refresh for that row only. Rows are matched
    on exact equality with the tick timestamp, so a second that is never ticked
    is never matched, and a second that is ticked twice is only matched once.
    """

    def __init__(
        self,
        *,
        db_lock,
        db_conn,
        notifier,
        fetch_next_occurrence: Callable[[str], Awaitable[NextOccurrence | None]],
        format_payload: Callable[[ActivityRecord], Any],
        now_func: Callable[[], int] | None = None,
        sleep_func: Callable[[float], Awaitable[None]] | None = None,
        enabled: bool = True,
    ) -> None:
        self.db_lock = db_lock
        self.db_conn = db_conn
        self.notifier = notifier
        self.fetch_next_occurrence = fetch_next_occurrence
        self.format_payload = format_payload
        self.now_func = now_func or (lambda: int(time.time()))
        self.sleep_func = sleep_func or asyncio.sleep
        self.enabled = bool(enabled)

        self._inflight: set[asyncio.Task] = set()
        self._last_tick: int | None = None

    async def due_records(self, now: int) -> list[ActivityRecord]:
        async with self.db_lock:
            return await asyncio.to_thread(fetch_due_activities_sync, self.db_conn, int(now))

    async def run_tick(self, now: int | None = None) -> list[asyncio.Task]:
        if not self.enabled:
            return []
        now = int(self.now_func()) if now is None else int(now)
        if now == self._last_tick:
            return []
        self._last_tick = now
        try:
            rows = await self.due_records(now)
        except Exception as e:
            print(f"[Activity] due query failed now={now}: {e}")
            return []

        tasks: list[asyncio.Task] = []
        for record in rows:
            if record.fire_at != now:
                continue
            task = asyncio.create_task(self.process_record(record))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            tasks.append(task)
        if tasks:
            print(f"[Activity] tick now={now} due={len(tasks)}")
        return tasks

    async def process_record(self, record: ActivityRecord) -> bool:
        if record.delay_seconds > 0:
            await self.sleep_func(record.delay_seconds)

        try:
            await self.notifier.send(record.notify_target, self.format_payload(record))
        except Exception as e:
            print(
                f"[Activity] notify failed subject={record.subject_id} "
                f"owner={record.owner_id}: {e}"
            )
            return False

        try:
            await self.refresh(record)
        except Exception as e:
            print(
                f"[Activity] refresh failed subject={record.subject_id} "
                f"owner={record.owner_id}: {e}"
            )
            return False
        return True

    async def refresh(self, record: ActivityRecord) -> ActivityRecord | None:
        nxt = await self.fetch_next_occurrence(record.subject_id)
        if nxt is None:
            async with self.db_lock:
                await asyncio.to_thread(
                    delete_activity_sync,
                    self.db_conn,
                    subject_id=record.subject_id,
                    owner_id=record.owner_id,
                )
            print(f"[Activity] tracking ended subject={record.subject_id} owner={record.owner_id}")
            return None

        updated = ActivityRecord(
            subject_id=record.subject_id,
            owner_id=record.owner_id,
            fire_at=int(nxt.fire_at),
            notify_target=record.notify_target,
            episode_or_sequence=str(nxt.episode_or_sequence),
            display_name=nxt.display_name or record.display_name,
            delay_seconds=record.delay_seconds,
            image=record.image,
        )
        async with self.db_lock:
            await asyncio.to_thread(upsert_activity_sync, self.db_conn, updated)
        return updated
