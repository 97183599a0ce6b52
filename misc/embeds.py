from __future__ import annotations

import html
import re
from typing import Any

import discord

from clients.anilist import preferred_title
from config.defaults import EMBED_COLOR

DESCRIPTION_LIMIT = 4000
FIELD_LIMIT = 1024

_TAG_RE = re.compile(r"<[^>]+>")
_SPOILER_RE = re.compile(r"~!(.*?)!~", re.S)


def clean_description(text: str | None, limit: int = DESCRIPTION_LIMIT) -> str:
    text = html.unescape(_TAG_RE.sub("", text or ""))
    text = _SPOILER_RE.sub(r"||\1||", text).strip()
    if len(text) > limit:
        text = text[: limit - 3].rstrip() + "..."
    return text or "No description."


def _date(value: dict[str, Any] | None) -> str:
    value = value or {}
    parts = [value.get("year"), value.get("month"), value.get("day")]
    if not parts[0]:
        return "?"
    return "-".join(f"{int(p):02d}" for p in parts if p)


def _field(embed: discord.Embed, name: str, value: Any, inline: bool = True) -> None:
    if value in (None, "", [], 0):
        return
    embed.add_field(name=name, value=str(value)[:FIELD_LIMIT], inline=inline)


def media_embed(media: dict[str, Any]) -> discord.Embed:
    embed = discord.Embed(
        title=preferred_title(media.get("title"), fallback="Unknown"),
        url=media.get("siteUrl"),
        description=clean_description(media.get("description")),
        color=EMBED_COLOR,
    )
    _field(embed, "Format", media.get("format"))
    _field(embed, "Status", media.get("status"))
    _field(embed, "Episodes", media.get("episodes"))
    _field(embed, "Chapters", media.get("chapters"))
    _field(embed, "Volumes", media.get("volumes"))
    _field(embed, "Score", f"{media['averageScore']}%" if media.get("averageScore") else None)
    _field(embed, "Start date", _date(media.get("startDate")))
    _field(embed, "Genres", ", ".join(media.get("genres") or []), inline=False)
    airing = media.get("nextAiringEpisode") or {}
    if airing.get("airingAt"):
        _field(embed, "Next episode", f"Episode {airing.get('episode')} <t:{int(airing['airingAt'])}:R>", inline=False)
    cover = (media.get("coverImage") or {}).get("extraLarge")
    if cover:
        embed.set_thumbnail(url=cover)
    return embed


def person_embed(person: dict[str, Any], *, extra: dict[str, Any] | None = None) -> discord.Embed:
    name = person.get("name") or {}
    embed = discord.Embed(
        title=str(name.get("full") or "Unknown"),
        url=person.get("siteUrl"),
        description=clean_description(person.get("description")),
        color=EMBED_COLOR,
    )
    _field(embed, "Native", name.get("native"))
    for key, value in (extra or {}).items():
        _field(embed, key, value)
    image = (person.get("image") or {}).get("large")
    if image:
        embed.set_thumbnail(url=image)
    return embed


def studio_embed(studio: dict[str, Any]) -> discord.Embed:
    nodes = ((studio.get("media") or {}).get("nodes")) or []
    titles = [f"- {preferred_title(n.get('title'), fallback='?')}" for n in nodes]
    embed = discord.Embed(
        title=str(studio.get("name") or "Unknown"),
        url=studio.get("siteUrl"),
        description="\n".join(titles) or "No known works.",
        color=EMBED_COLOR,
    )
    _field(embed, "Animation studio", "yes" if studio.get("isAnimationStudio") else "no")
    _field(embed, "Favourites", studio.get("favourites"))
    return embed


def user_embed(user: dict[str, Any]) -> discord.Embed:
    stats = user.get("statistics") or {}
    anime = stats.get("anime") or {}
    manga = stats.get("manga") or {}
    embed = discord.Embed(title=str(user.get("name") or "Unknown"), url=user.get("siteUrl"), color=EMBED_COLOR)
    _field(embed, "Anime watched", anime.get("count"))
    _field(embed, "Episodes", anime.get("episodesWatched"))
    _field(embed, "Days watched", round(int(anime.get("minutesWatched") or 0) / 1440, 1) or None)
    _field(embed, "Anime mean score", anime.get("meanScore"))
    _field(embed, "Manga read", manga.get("count"))
    _field(embed, "Chapters", manga.get("chaptersRead"))
    _field(embed, "Manga mean score", manga.get("meanScore"))
    avatar = (user.get("avatar") or {}).get("large")
    if avatar:
        embed.set_thumbnail(url=avatar)
    return embed


def seiyuu_embed(staff: dict[str, Any]) -> discord.Embed:
    name = staff.get("name") or {}
    nodes = ((staff.get("characters") or {}).get("nodes")) or []
    roles = []
    for node in nodes:
        full = (node.get("name") or {}).get("full") or "?"
        roles.append(f"- [{full}]({node['siteUrl']})" if node.get("siteUrl") else f"- {full}")
    embed = discord.Embed(
        title=str(name.get("full") or "Unknown"),
        url=staff.get("siteUrl"),
        description="\n".join(roles) or "No known roles.",
        color=EMBED_COLOR,
    )
    _field(embed, "Native", name.get("native"))
    image = (staff.get("image") or {}).get("large")
    if image:
        embed.set_thumbnail(url=image)
    # Most favourited role as the large picture.
    first = (nodes[0].get("image") or {}).get("large") if nodes else None
    if first:
        embed.set_image(url=first)
    return embed


def level_embed(user: dict[str, Any], xp: float, level: int, actual: float, span: float) -> discord.Embed:
    progress = f"{actual:.0f} / {span:.0f} XP to the next level" if span else "Max level reached"
    embed = discord.Embed(
        title=str(user.get("name") or "Unknown"),
        url=user.get("siteUrl"),
        description=f"Level {level} ({xp:.0f} XP)\n{progress}",
        color=EMBED_COLOR,
    )
    avatar = (user.get("avatar") or {}).get("large")
    if avatar:
        embed.set_thumbnail(url=avatar)
    return embed


def compare_embed(user1: dict[str, Any], user2: dict[str, Any], lines: list[str]) -> discord.Embed:
    return discord.Embed(
        title=f"{user1.get('name') or '?'} vs {user2.get('name') or '?'}",
        description=clean_description("\n".join(lines)),
        color=EMBED_COLOR,
    )


def steam_embed(game: dict[str, Any]) -> discord.Embed:
    embed = discord.Embed(
        title=str(game.get("name") or "Unknown"),
        url=game.get("store_url"),
        description=clean_description(game.get("short_description")),
        color=EMBED_COLOR,
    )
    if game.get("is_free"):
        _field(embed, "Price", "Free")
    else:
        _field(embed, "Price", (game.get("price_overview") or {}).get("final_formatted"))
    _field(embed, "Release date", (game.get("release_date") or {}).get("date"))
    _field(embed, "Developers", ", ".join(game.get("developers") or []))
    _field(embed, "Publishers", ", ".join(game.get("publishers") or []))
    platforms = [name for name, ok in (game.get("platforms") or {}).items() if ok]
    _field(embed, "Platforms", ", ".join(platforms))
    genres = [str(g.get("description")) for g in game.get("genres") or [] if isinstance(g, dict)]
    _field(embed, "Genres", ", ".join(genres), inline=False)
    if game.get("header_image"):
        embed.set_image(url=game["header_image"])
    return embed


def image_embed(url: str, *, title: str | None = None) -> discord.Embed:
    embed = discord.Embed(title=title, color=EMBED_COLOR)
    embed.set_image(url=url)
    return embed
