from __future__ import annotations

import asyncio
import io
import json
from typing import Any

from cache.service import CachedFetcher
from clients.http import UpstreamError


SYSTEM_PROMPT = "You are a helpful assistant."
TRANSLATOR_PROMPT = "You are an expert translator and only translate."


class AiModuleNotConfigured(RuntimeError):
    pass


class ChatClient:
    """OpenAI-compatible question, image and transcription calls.

    Questions and translations are cached by (model, messages). Image generation always goes
    upstream but the result is still stored. Transcriptions are never cached.
    """

    def __init__(
        self,
        *,
        fetcher: CachedFetcher,
        ttl_seconds: int,
        client=None,
        model: str,
        image_client=None,
        image_model: str = "",
        image_size: str = "1024x1024",
        image_quality: str = "standard",
        image_style: str = "vivid",
        transcription_client=None,
        transcription_model: str = "",
    ) -> None:
        self.fetcher = fetcher
        self.ttl_seconds = int(ttl_seconds)
        self.client = client
        self.model = model
        self.image_client = image_client
        self.image_model = image_model
        self.image_size = image_size
        self.image_quality = image_quality
        self.image_style = image_style
        self.transcription_client = transcription_client
        self.transcription_model = transcription_model

    @staticmethod
    def _require(client, what: str):
        if client is None:
            raise AiModuleNotConfigured(f"AI {what} is not configured.")
        return client

    async def ask(self, prompt: str) -> str:
        return await self._complete(
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ]
        )

    async def translate(self, text: str, lang: str) -> str:
        """Translates text into the language named by an ISO-639-1 code."""
        return await self._complete(
            [
                {"role": "system", "content": TRANSLATOR_PROMPT},
                {
                    "role": "user",
                    "content": (
                        "Translate the text below into the language with this ISO-639-1 code "
                        f"and answer with the translation only.\niso code: {lang}\ntext:\n{text}"
                    ),
                },
            ]
        )

    async def _complete(self, messages: list[dict[str, str]]) -> str:
        client = self._require(self.client, "question")

        async def do_fetch() -> str:
            resp = await asyncio.to_thread(
                client.chat.completions.create,
                model=self.model,
                messages=messages,
            )
            text = (resp.choices[0].message.content or "").strip()
            if not text:
                raise UpstreamError("model returned an empty answer")
            return text

        return await self.fetcher.fetch(
            {"model": self.model, "messages": messages},
            self.ttl_seconds,
            False,
            do_fetch,
        )

    async def generate_image(self, prompt: str) -> str:
        """Returns the generated image URL."""
        client = self._require(self.image_client, "image")
        request = {
            "model": self.image_model,
            "prompt": prompt,
            "size": self.image_size,
            "quality": self.image_quality,
            "style": self.image_style,
            "n": 1,
        }

        async def do_fetch() -> str:
            resp = await asyncio.to_thread(client.images.generate, **request)
            data = list(getattr(resp, "data", None) or [])
            url = getattr(data[0], "url", None) if data else None
            if not url:
                raise UpstreamError("image endpoint returned no URL")
            return json.dumps({"url": url})

        text = await self.fetcher.fetch(request, self.ttl_seconds, True, do_fetch)
        return str(json.loads(text)["url"])

    async def transcribe(self, data: bytes, filename: str) -> str:
        client = self._require(self.transcription_client, "transcription")
        buf = io.BytesIO(data)
        buf.name = filename or "audio.mp3"
        resp = await asyncio.to_thread(
            client.audio.transcriptions.create,
            model=self.transcription_model,
            file=buf,
        )
        text: Any = getattr(resp, "text", resp)
        return str(text or "").strip()
