from __future__ import annotations

import json
from typing import Any

import aiohttp


DEFAULT_TIMEOUT_SECONDS = 20
USER_AGENT = "Kasuki (discord bot)"


class UpstreamError(RuntimeError):
    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


def _timeout(seconds: float | None) -> aiohttp.ClientTimeout:
    return aiohttp.ClientTimeout(total=float(seconds or DEFAULT_TIMEOUT_SECONDS))


async def _read_text(response: aiohttp.ClientResponse, url: str) -> str:
    text = await response.text()
    if response.status >= 400:
        raise UpstreamError(f"{url} returned HTTP {response.status}: {text[:200]}", status=response.status)
    return text


async def post_json_text(
    url: str,
    payload: dict[str, Any],
    *,
    headers: dict[str, str] | None = None,
    timeout_seconds: float | None = None,
) -> str:
    merged = {"Content-Type": "application/json", "Accept": "application/json", "User-Agent": USER_AGENT}
    merged.update(headers or {})
    try:
        async with aiohttp.ClientSession(timeout=_timeout(timeout_seconds)) as session:
            async with session.post(url, data=json.dumps(payload), headers=merged) as response:
                return await _read_text(response, url)
    except aiohttp.ClientError as e:
        raise UpstreamError(f"request to {url} failed: {e}") from e


async def get_text(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float | None = None,
) -> str:
    merged = {"User-Agent": USER_AGENT}
    merged.update(headers or {})
    try:
        async with aiohttp.ClientSession(timeout=_timeout(timeout_seconds)) as session:
            async with session.get(url, params=params, headers=merged) as response:
                return await _read_text(response, url)
    except aiohttp.ClientError as e:
        raise UpstreamError(f"request to {url} failed: {e}") from e


async def get_json(url: str, **kwargs) -> Any:
    text = await get_text(url, **kwargs)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise UpstreamError(f"{url} returned invalid JSON: {e}") from e


async def get_bytes(url: str, *, timeout_seconds: float | None = None) -> bytes:
    try:
        async with aiohttp.ClientSession(timeout=_timeout(timeout_seconds)) as session:
            async with session.get(url, headers={"User-Agent": USER_AGENT}) as response:
                if response.status >= 400:
                    raise UpstreamError(f"{url} returned HTTP {response.status}", status=response.status)
                return await response.read()
    except aiohttp.ClientError as e:
        raise UpstreamError(f"request to {url} failed: {e}") from e


def parse_json_text(text: str, *, source: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise UpstreamError(f"{source} returned invalid JSON: {e}") from e
