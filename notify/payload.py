from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from activity.store import ActivityRecord
from config.defaults import ACTIVITY_DESCRIPTION
from config.defaults import ACTIVITY_TITLE
from config.defaults import ACTIVITY_URL
from config.defaults import WEBHOOK_NAME_MAX_CHARS


@dataclass(slots=True)
class ActivityNotification:
    username: str
    avatar: bytes | None
    title: str
    description: str
    url: str


def _fill(template: str, record: ActivityRecord) -> str:
    return (
        (template or "")
        .replace("$ep$", str(record.episode_or_sequence))
        .replace("$anime$", str(record.display_name))
        .replace("$id$", str(record.subject_id))
    )


def decode_avatar(image: str) -> bytes | None:
    """Decode a stored base64 avatar, with or without a data: URI prefix."""
    text = (image or "").strip()
    if not text:
        return None
    if text.startswith("data:") and "," in text:
        text = text.split(",", 1)[1]
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        return None


def encode_avatar(data: bytes, content_type: str = "image/png") -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def build_activity_notification(
    record: ActivityRecord,
    *,
    title: str = ACTIVITY_TITLE,
    description: str = ACTIVITY_DESCRIPTION,
    url: str = ACTIVITY_URL,
) -> ActivityNotification:
    return ActivityNotification(
        username=(record.display_name or "Kasuki")[:WEBHOOK_NAME_MAX_CHARS],
        avatar=decode_avatar(record.image),
        title=_fill(title, record),
        description=_fill(description, record),
        url=_fill(url, record),
    )
