from __future__ import annotations

from typing import Any


BASE_XP = 100.0
GROWTH_RATE = 1.12
MAX_LEVEL = 100


def completed_count(statuses: list[dict[str, Any]] | None) -> int:
    for entry in statuses or []:
        if str((entry or {}).get("status") or "") == "COMPLETED":
            return int(entry.get("count") or 0)
    return 0


def user_xp(user: dict[str, Any]) -> float:
    """Completed titles weigh 8, chapters 2, minutes watched 0.5."""
    stats = user.get("statistics") or {}
    anime = stats.get("anime") or {}
    manga = stats.get("manga") or {}
    completed = completed_count(anime.get("statuses")) + completed_count(manga.get("statuses"))
    return (
        8.0 * completed
        + 2.0 * int(manga.get("chaptersRead") or 0)
        + 0.5 * int(anime.get("minutesWatched") or 0)
    )


def xp_required_for_level(level: int) -> float:
    if level <= 0:
        return 0.0
    if level == 1:
        return BASE_XP
    xp = BASE_XP * GROWTH_RATE ** (level - 1)
    if level <= 25:
        return xp
    if level <= 50:
        return xp * 1.2
    if level <= 75:
        return xp * 1.5
    return xp * 2.0


def level_for_xp(xp: float) -> tuple[int, float, float]:
    """Returns (level, xp into that level, xp the level spans).

    The span of the last level is reported as 0.
    """
    xp = max(0.0, float(xp))
    level = 0
    while level < MAX_LEVEL and xp >= xp_required_for_level(level + 1):
        level += 1
    floor = xp_required_for_level(level)
    span = 0.0 if level == MAX_LEVEL else xp_required_for_level(level + 1) - floor
    return level, xp - floor, span


def _names(entries: list[dict[str, Any]] | None, key: str) -> list[str]:
    out = []
    for entry in entries or []:
        value = (entry or {}).get(key)
        if isinstance(value, dict):
            value = value.get("name")
        if value:
            out.append(str(value))
    return out


def top_genre(block: dict[str, Any]) -> str:
    names = _names(block.get("genres"), "genre")
    return names[0] if names else ""


def top_tag(block: dict[str, Any]) -> str:
    names = _names(block.get("tags"), "tag")
    return names[0] if names else ""


def jaccard(a: list[str], b: list[str]) -> float:
    union = set(a) | set(b)
    if not union:
        return 0.0
    return len(set(a) & set(b)) / len(union)


def affinity(user1: dict[str, Any], user2: dict[str, Any]) -> float:
    """Percentage overlap of favourite genres and tags across anime and manga."""
    stats1 = user1.get("statistics") or {}
    stats2 = user2.get("statistics") or {}
    scores = []
    for kind in ("anime", "manga"):
        block1 = stats1.get(kind) or {}
        block2 = stats2.get(kind) or {}
        scores.append(jaccard(_names(block1.get("genres"), "genre"), _names(block2.get("genres"), "genre")))
        scores.append(jaccard(_names(block1.get("tags"), "tag"), _names(block2.get("tags"), "tag")))
    return round(100.0 * sum(scores) / len(scores), 2)


def compare_lines(user1: dict[str, Any], user2: dict[str, Any]) -> list[str]:
    name1 = str(user1.get("name") or "?")
    name2 = str(user2.get("name") or "?")
    stats1 = user1.get("statistics") or {}
    stats2 = user2.get("statistics") or {}
    anime1, anime2 = stats1.get("anime") or {}, stats2.get("anime") or {}
    manga1, manga2 = stats1.get("manga") or {}, stats2.get("manga") or {}

    lines = [f"{name1} and {name2} have an affinity of {affinity(user1, user2)}%."]
    for what, a, b in (
        ("anime", anime1.get("count"), anime2.get("count")),
        ("watch time", anime1.get("minutesWatched"), anime2.get("minutesWatched")),
        ("manga", manga1.get("count"), manga2.get("count")),
        ("chapters read", manga1.get("chaptersRead"), manga2.get("chaptersRead")),
    ):
        a, b = int(a or 0), int(b or 0)
        if a == b:
            lines.append(f"{name1} and {name2} have the same {what}.")
        elif a > b:
            lines.append(f"{name1} has more {what} than {name2}.")
        else:
            lines.append(f"{name2} has more {what} than {name1}.")

    for what, a, b in (
        ("anime genre", top_genre(anime1), top_genre(anime2)),
        ("anime tag", top_tag(anime1), top_tag(anime2)),
        ("manga genre", top_genre(manga1), top_genre(manga2)),
        ("manga tag", top_tag(manga1), top_tag(manga2)),
    ):
        if not a and not b:
            continue
        if a == b:
            lines.append(f"Both prefer the {what} {a}.")
        else:
            lines.append(f"{name1} prefers the {what} {a or 'none'} while {name2} prefers {b or 'none'}.")
    return lines
