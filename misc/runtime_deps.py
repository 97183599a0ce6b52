from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class RuntimeBootDeps:
    activity_enabled: bool
    activity_loop_func: Callable
    random_stats_enabled: bool
    random_stats_loop_func: Callable
    command_prefix: str = "!"
