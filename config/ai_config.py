from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from config.defaults import DEFAULT_AI_IMAGE_MODEL
from config.defaults import DEFAULT_AI_IMAGE_QUALITY
from config.defaults import DEFAULT_AI_IMAGE_SIZE
from config.defaults import DEFAULT_AI_IMAGE_STYLE
from config.defaults import DEFAULT_AI_QUESTION_MODEL
from config.defaults import DEFAULT_AI_TRANSCRIPTION_MODEL


@dataclass(slots=True)
class AiEndpoint:
    api_key: str = ""
    base_url: str = ""
    model: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


@dataclass(slots=True)
class AiConfig:
    question: AiEndpoint
    image: AiEndpoint
    transcription: AiEndpoint
    image_size: str = DEFAULT_AI_IMAGE_SIZE
    image_quality: str = DEFAULT_AI_IMAGE_QUALITY
    image_style: str = DEFAULT_AI_IMAGE_STYLE


def _endpoint(raw: Any, *, fallback: AiEndpoint, default_model: str) -> AiEndpoint:
    raw = raw if isinstance(raw, dict) else {}
    return AiEndpoint(
        api_key=str(raw.get("api_key") or raw.get("token") or fallback.api_key or "").strip(),
        base_url=str(raw.get("base_url") or fallback.base_url or "").strip(),
        model=str(raw.get("model") or fallback.model or default_model).strip(),
    )


def env_fallback() -> AiEndpoint:
    return AiEndpoint(
        api_key=os.getenv("OPENAI_API_KEY", "").strip(),
        base_url=os.getenv("OPENAI_BASE_URL", "").strip(),
        model=os.getenv("OPENAI_MODEL", "").strip(),
    )


def normalize_ai_config(payload: Any, *, fallback: AiEndpoint | None = None) -> AiConfig:
    payload = payload if isinstance(payload, dict) else {}
    fallback = fallback or AiEndpoint()
    ai = payload.get("ai") if isinstance(payload.get("ai"), dict) else payload
    image_raw = ai.get("image") if isinstance(ai.get("image"), dict) else {}
    # Image and transcription only inherit credentials, not the chat model.
    creds = AiEndpoint(api_key=fallback.api_key, base_url=fallback.base_url)
    return AiConfig(
        question=_endpoint(ai.get("question"), fallback=fallback, default_model=DEFAULT_AI_QUESTION_MODEL),
        image=_endpoint(image_raw, fallback=creds, default_model=DEFAULT_AI_IMAGE_MODEL),
        transcription=_endpoint(
            ai.get("transcription"), fallback=creds, default_model=DEFAULT_AI_TRANSCRIPTION_MODEL
        ),
        image_size=str(image_raw.get("size") or DEFAULT_AI_IMAGE_SIZE),
        image_quality=str(image_raw.get("quality") or DEFAULT_AI_IMAGE_QUALITY),
        image_style=str(image_raw.get("style") or DEFAULT_AI_IMAGE_STYLE),
    )


def load_ai_config(path: str | None, *, fallback: AiEndpoint | None = None) -> tuple[AiConfig, str | None]:
    """
    Returns (config, warning_message). warning_message is None on clean load
    or when no path was given.
    """
    fallback = fallback if fallback is not None else env_fallback()
    if not path:
        return (normalize_ai_config({}, fallback=fallback), None)

    p = Path(path)
    if not p.exists():
        return (normalize_ai_config({}, fallback=fallback), f"AI config not found at {p}; using environment.")

    try:
        payload = yaml.safe_load(p.read_text(encoding="utf-8"))
    except Exception as exc:
        return (normalize_ai_config({}, fallback=fallback), f"Failed to read AI config from {p}: {exc}; using environment.")

    if payload is not None and not isinstance(payload, dict):
        return (normalize_ai_config({}, fallback=fallback), f"Invalid AI config format in {p}; using environment.")

    return (normalize_ai_config(payload, fallback=fallback), None)
