"""TelegramChannel — the messaging channel over the Telegram Bot API.

Outbound:
  - ``sendMessage`` with an ``inline_keyboard`` for inline actions
  - ``sendVoice`` (multipart) for spoken prompts
  - ``answerCallbackQuery`` to acknowledge button presses

Inbound:
  - ``parse_update`` turns a raw update (webhook body or ``getUpdates``
    entry) into a transport-neutral event
  - ``fetch_audio`` resolves a voice ``file_id`` via ``getFile`` and
    downloads the clip

Spoken prompts are written to a temporary file just before upload and
removed right after, whether or not the upload succeeded.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field

from survey_engine.errors import ChannelError, RecognitionFailed
from survey_engine.interfaces import MessagingChannel
from survey_engine.models.channel import (
    CallbackPressed,
    InboundEvent,
    InlineAction,
    TextMessage,
    VoiceMessage,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.telegram.org"
DEFAULT_TIMEOUT = 10.0

# Buttons whose tokens start with these prefixes get a row of their own
_FULL_WIDTH_PREFIXES = ("option:", "start:")
_BUTTONS_PER_ROW = 3


# ---------------------------------------------------------------------------
# Update models (only the fields the bot reads)
# ---------------------------------------------------------------------------

class _TelegramModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TelegramUser(_TelegramModel):
    id: int
    first_name: Optional[str] = None


class TelegramChat(_TelegramModel):
    id: int


class TelegramVoice(_TelegramModel):
    file_id: str
    duration: Optional[int] = None


class TelegramMessage(_TelegramModel):
    message_id: int
    chat: TelegramChat
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")
    text: Optional[str] = None
    voice: Optional[TelegramVoice] = None
    # Audio files sent as documents of type audio carry the same file_id shape
    audio: Optional[TelegramVoice] = None


class TelegramCallbackQuery(_TelegramModel):
    id: str
    from_user: TelegramUser = Field(alias="from")
    message: Optional[TelegramMessage] = None
    data: Optional[str] = None


class TelegramUpdate(_TelegramModel):
    update_id: int
    message: Optional[TelegramMessage] = None
    callback_query: Optional[TelegramCallbackQuery] = None


def parse_update(update: TelegramUpdate | dict) -> InboundEvent | None:
    """Convert a Telegram update into an inbound event.

    Returns None for updates the bot does not react to (edits, stickers,
    callbacks without data, ...).
    """
    if isinstance(update, dict):
        update = TelegramUpdate.model_validate(update)

    if update.message is not None:
        message = update.message
        respondent_id = str(message.chat.id)
        name = message.from_user.first_name if message.from_user else None
        if message.text is not None:
            return TextMessage(respondent_id=respondent_id, display_name=name, text=message.text)
        clip = message.voice or message.audio
        if clip is not None:
            return VoiceMessage(
                respondent_id=respondent_id, display_name=name, audio_ref=clip.file_id,
            )
        return None

    query = update.callback_query
    if query is not None and query.data:
        # Buttons are pressed in the chat the bot wrote to
        chat_id = query.message.chat.id if query.message else query.from_user.id
        return CallbackPressed(
            respondent_id=str(chat_id),
            display_name=query.from_user.first_name,
            token=query.data,
            callback_id=query.id,
        )
    return None


def layout_keyboard(actions: Sequence[InlineAction]) -> list[list[dict]]:
    """Lay inline actions out as Telegram ``inline_keyboard`` rows.

    Option and form-version buttons get one row each; the remaining
    (navigation) buttons share rows of up to three.
    """
    rows: list[list[dict]] = []
    pending: list[dict] = []
    for action in actions:
        button = {"text": action.label, "callback_data": action.token}
        if action.token.startswith(_FULL_WIDTH_PREFIXES):
            rows.append([button])
            continue
        pending.append(button)
        if len(pending) == _BUTTONS_PER_ROW:
            rows.append(pending)
            pending = []
    if pending:
        rows.append(pending)
    return rows


# ---------------------------------------------------------------------------
# Channel
# ---------------------------------------------------------------------------

class TelegramChannel(MessagingChannel):
    """Bot API client implementing :class:`MessagingChannel`.

    Args:
        token: bot token from @BotFather
        api_url: Bot API root (override for a local Bot API server)
        timeout: per-request timeout in seconds
        audio_dir: directory for temporary voice files (system temp dir
            if omitted)
        client: pre-built ``httpx.AsyncClient`` (for tests)
    """

    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        audio_dir: str | Path | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token:
            raise ValueError("A Telegram bot token is required")
        api_url = api_url.rstrip("/")
        self._method_url = f"{api_url}/bot{token}"
        self._file_url = f"{api_url}/file/bot{token}"
        self._timeout = timeout
        self._audio_dir = str(audio_dir) if audio_dir is not None else None
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # MessagingChannel
    # ------------------------------------------------------------------

    async def send_text(
        self,
        respondent_id: str,
        text: str,
        actions: Sequence[InlineAction] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"chat_id": respondent_id, "text": text}
        if actions:
            payload["reply_markup"] = {"inline_keyboard": layout_keyboard(actions)}
        await self._call("sendMessage", json=payload)

    async def send_audio(self, respondent_id: str, audio: bytes) -> None:
        fd, path = tempfile.mkstemp(prefix="prompt-", suffix=".ogg", dir=self._audio_dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(audio)
            with open(path, "rb") as f:
                await self._call(
                    "sendVoice",
                    data={"chat_id": respondent_id},
                    files={"voice": ("prompt.ogg", f, "audio/ogg")},
                )
        finally:
            Path(path).unlink(missing_ok=True)

    async def fetch_audio(self, audio_ref: str) -> bytes:
        try:
            file_info = await self._call("getFile", json={"file_id": audio_ref})
        except ChannelError as exc:
            raise RecognitionFailed(f"Cannot resolve voice file: {exc}") from exc

        file_path = file_info.get("file_path") if isinstance(file_info, dict) else None
        if not file_path:
            raise RecognitionFailed(f"Voice file {audio_ref} has no download path")

        try:
            resp = await self._client.get(f"{self._file_url}/{file_path}", timeout=self._timeout)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise RecognitionFailed(f"Voice download failed: {exc}") from exc
        return resp.content

    async def acknowledge(self, callback_id: str) -> None:
        await self._call("answerCallbackQuery", json={"callback_query_id": callback_id})

    # ------------------------------------------------------------------
    # Polling / webhook management
    # ------------------------------------------------------------------

    async def get_updates(self, *, offset: int | None = None, poll_timeout: int = 30) -> list[dict]:
        """Long-poll for updates; the request may block for ``poll_timeout`` seconds."""
        payload: dict[str, Any] = {
            "timeout": poll_timeout,
            "allowed_updates": ["message", "callback_query"],
        }
        if offset is not None:
            payload["offset"] = offset
        result = await self._call(
            "getUpdates", json=payload, timeout=poll_timeout + self._timeout,
        )
        return list(result or [])

    async def set_webhook(self, url: str, *, secret_token: str | None = None) -> None:
        payload: dict[str, Any] = {
            "url": url,
            "allowed_updates": ["message", "callback_query"],
        }
        if secret_token:
            payload["secret_token"] = secret_token
        await self._call("setWebhook", json=payload)

    async def delete_webhook(self) -> None:
        await self._call("deleteWebhook", json={})

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _call(self, method: str, *, timeout: float | None = None, **kwargs) -> Any:
        """POST a Bot API method and return its ``result``; raises ChannelError."""
        try:
            resp = await self._client.post(
                f"{self._method_url}/{method}",
                timeout=timeout if timeout is not None else self._timeout,
                **kwargs,
            )
            body = resp.json()
        except httpx.TimeoutException as exc:
            raise ChannelError(f"Telegram {method} timed out") from exc
        except httpx.HTTPError as exc:
            raise ChannelError(f"Telegram {method} failed: {exc}") from exc
        except ValueError as exc:
            raise ChannelError(
                f"Telegram {method} returned non-JSON (HTTP {resp.status_code})"
            ) from exc

        if not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else body
            raise ChannelError(f"Telegram {method} rejected: {description}")
        return body.get("result")
