"""HttpSpeechProvider — text-to-speech and speech-to-text over HTTP.

Talks to a speech service exposing two endpoints::

    POST {base_url}/synthesize   json {text, language, voice}  → audio bytes
    POST {base_url}/recognize    raw audio body (?language=..)  → {"text": ...}

Synthesis is best effort for the engine, so failures raise
``SpeechError``; recognition failures raise ``RecognitionFailed``.
"""

from __future__ import annotations

import logging

import httpx

from survey_engine.errors import RecognitionFailed, SpeechError
from survey_engine.interfaces import SpeechProvider

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


class HttpSpeechProvider(SpeechProvider):
    """Speech service client.

    Args:
        base_url: root URL of the speech service
        language: language code sent with both requests
        voice: optional voice identifier for synthesis
        audio_format: MIME type of the audio exchanged with the service
        timeout: per-request timeout in seconds
        client: pre-built ``httpx.AsyncClient`` (for tests)
    """

    def __init__(
        self,
        base_url: str,
        *,
        language: str = "ru",
        voice: str | None = None,
        audio_format: str = "audio/ogg",
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._language = language
        self._voice = voice
        self._audio_format = audio_format
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def synthesize(self, text: str) -> bytes:
        payload = {"text": text, "language": self._language}
        if self._voice:
            payload["voice"] = self._voice
        try:
            resp = await self._client.post(
                f"{self._base_url}/synthesize", json=payload, timeout=self._timeout,
            )
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            raise SpeechError("Speech synthesis timed out") from exc
        except httpx.HTTPError as exc:
            raise SpeechError(f"Speech synthesis failed: {exc}") from exc

        if not resp.content:
            raise SpeechError("Speech synthesis returned no audio")
        return resp.content

    async def recognize(self, audio: bytes) -> str | None:
        try:
            resp = await self._client.post(
                f"{self._base_url}/recognize",
                content=audio,
                params={"language": self._language},
                headers={"Content-Type": self._audio_format},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            body = resp.json()
        except httpx.TimeoutException as exc:
            raise RecognitionFailed("Speech recognition timed out") from exc
        except httpx.HTTPError as exc:
            raise RecognitionFailed(f"Speech recognition failed: {exc}") from exc
        except ValueError as exc:
            raise RecognitionFailed("Speech recognition returned invalid JSON") from exc

        text = body.get("text") if isinstance(body, dict) else None
        if not isinstance(text, str) or not text.strip():
            logger.debug("Speech recognition returned no text")
            return None
        return text.strip()
