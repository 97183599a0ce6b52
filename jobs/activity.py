from __future__ import annotations

import asyncio
import time


async def activity_loop(*, scheduler) -> None:
    while True:
        try:
            await scheduler.run_tick()
        except Exception as e:
            print(f"[Activity] loop error: {e}")
        # Rows match on fire_at == now, so every wall-clock second gets exactly one tick.
        await asyncio.sleep(1.0 - (time.time() % 1.0))
