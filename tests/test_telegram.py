"""Telegram channel tests — update parsing, keyboards, Bot API calls.

Bot API calls go through ``httpx.MockTransport``; the handler answers
by method name so each test can script just the methods it needs.
"""

import json

import httpx
import pytest

from survey_clients.telegram import TelegramChannel, TelegramUpdate, layout_keyboard, parse_update
from survey_engine.errors import ChannelError, RecognitionFailed
from survey_engine.models.channel import (
    CallbackPressed,
    InlineAction,
    TextMessage,
    VoiceMessage,
)

TOKEN = "123:abc"


def _message(**fields) -> dict:
    message = {
        "message_id": 7,
        "chat": {"id": 555, "type": "private"},
        "from": {"id": 555, "is_bot": False, "first_name": "Анна"},
        "date": 0,
    }
    message.update(fields)
    return {"update_id": 1, "message": message}


class BotApi:
    """Scripted Bot API: ``results[method]`` is returned as the call result."""

    def __init__(self, **results):
        self.results = results
        self.requests: list[httpx.Request] = []
        self.downloads: dict[str, bytes] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        path = request.url.path
        if path.startswith(f"/file/bot{TOKEN}/"):
            name = path.split("/", 3)[3]
            if name in self.downloads:
                return httpx.Response(200, content=self.downloads[name])
            return httpx.Response(404)
        method = path.rsplit("/", 1)[1]
        result = self.results.get(method, True)
        if isinstance(result, Exception):
            raise result
        if result is None:
            return httpx.Response(400, json={"ok": False, "description": "Bad Request"})
        return httpx.Response(200, json={"ok": True, "result": result})

    def calls(self, method: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(f"/{method}")]


def make_channel(api: BotApi, **kwargs) -> TelegramChannel:
    client = httpx.AsyncClient(transport=httpx.MockTransport(api))
    return TelegramChannel(TOKEN, client=client, **kwargs)


# =====================================================================
# Update parsing
# =====================================================================


class TestParseUpdate:

    def test_text_message(self):
        event = parse_update(_message(text="/start"))
        assert event == TextMessage(respondent_id="555", display_name="Анна", text="/start")

    def test_voice_message(self):
        event = parse_update(_message(voice={"file_id": "F1", "duration": 2}))
        assert isinstance(event, VoiceMessage)
        assert event.audio_ref == "F1"

    def test_audio_file_treated_as_voice(self):
        event = parse_update(_message(audio={"file_id": "F2"}))
        assert event.audio_ref == "F2"

    def test_callback_uses_message_chat(self):
        update = {
            "update_id": 2,
            "callback_query": {
                "id": "cb-9",
                "from": {"id": 1, "first_name": "Анна"},
                "message": _message(text="Вопрос")["message"],
                "data": "option:q1:0",
            },
        }
        event = parse_update(update)
        assert event == CallbackPressed(
            respondent_id="555", display_name="Анна", token="option:q1:0", callback_id="cb-9",
        )

    def test_callback_without_message_uses_sender(self):
        update = {
            "update_id": 3,
            "callback_query": {"id": "cb", "from": {"id": 42}, "data": "home"},
        }
        assert parse_update(update).respondent_id == "42"

    @pytest.mark.parametrize(
        "update",
        [
            _message(sticker={"file_id": "S"}),
            {"update_id": 4, "edited_message": {"message_id": 1}},
            {"update_id": 5, "callback_query": {"id": "cb", "from": {"id": 1}}},
        ],
    )
    def test_ignored_updates(self, update):
        assert parse_update(update) is None

    def test_accepts_validated_model(self):
        update = TelegramUpdate.model_validate(_message(text="1"))
        assert parse_update(update).text == "1"


# =====================================================================
# Keyboard layout
# =====================================================================


class TestLayoutKeyboard:

    def test_options_full_width_navigation_grouped(self):
        actions = [
            InlineAction(label="1. Да", token="option:q:0"),
            InlineAction(label="2. Нет", token="option:q:1"),
            InlineAction(label="Повторить", token="repeat"),
            InlineAction(label="Назад", token="previous"),
            InlineAction(label="Пропустить", token="skip"),
            InlineAction(label="В начало", token="home"),
        ]
        rows = layout_keyboard(actions)
        assert [[b["callback_data"] for b in row] for row in rows] == [
            ["option:q:0"],
            ["option:q:1"],
            ["repeat", "previous", "skip"],
            ["home"],
        ]
        assert rows[0][0] == {"text": "1. Да", "callback_data": "option:q:0"}

    def test_version_menu_one_per_row(self):
        actions = [InlineAction(label=f"v{i}", token=f"start:v{i}") for i in range(2)]
        assert layout_keyboard(actions) == [
            [{"text": "v0", "callback_data": "start:v0"}],
            [{"text": "v1", "callback_data": "start:v1"}],
        ]


# =====================================================================
# Bot API calls
# =====================================================================


class TestSendText:

    @pytest.mark.asyncio
    async def test_plain_text(self):
        api = BotApi(sendMessage={"message_id": 1})
        await make_channel(api).send_text("555", "Привет")

        request = api.calls("sendMessage")[0]
        assert str(request.url) == f"https://api.telegram.org/bot{TOKEN}/sendMessage"
        assert json.loads(request.content) == {"chat_id": "555", "text": "Привет"}

    @pytest.mark.asyncio
    async def test_inline_keyboard(self):
        api = BotApi(sendMessage={"message_id": 1})
        await make_channel(api).send_text(
            "555", "Вопрос", [InlineAction(label="В начало", token="home")],
        )
        payload = json.loads(api.calls("sendMessage")[0].content)
        assert payload["reply_markup"] == {
            "inline_keyboard": [[{"text": "В начало", "callback_data": "home"}]],
        }

    @pytest.mark.asyncio
    async def test_rejected_call_raises(self):
        api = BotApi(sendMessage=None)
        with pytest.raises(ChannelError):
            await make_channel(api).send_text("555", "Привет")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        api = BotApi(sendMessage=httpx.ConnectError("refused"))
        with pytest.raises(ChannelError):
            await make_channel(api).send_text("555", "Привет")

    def test_token_required(self):
        with pytest.raises(ValueError):
            TelegramChannel("")


class TestSendAudio:
    """Temporary voice files never outlive the upload."""

    @pytest.mark.asyncio
    async def test_upload_and_cleanup(self, tmp_path):
        api = BotApi(sendVoice={"message_id": 2})
        await make_channel(api, audio_dir=tmp_path).send_audio("555", b"OggS-voice")

        request = api.calls("sendVoice")[0]
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        assert b"OggS-voice" in request.content
        assert list(tmp_path.iterdir()) == [], "Temp file must be removed"

    @pytest.mark.asyncio
    async def test_cleanup_on_failure(self, tmp_path):
        api = BotApi(sendVoice=None)
        with pytest.raises(ChannelError):
            await make_channel(api, audio_dir=tmp_path).send_audio("555", b"OggS-voice")
        assert list(tmp_path.iterdir()) == [], "Temp file must be removed after a failure"


class TestFetchAudio:

    @pytest.mark.asyncio
    async def test_download(self):
        api = BotApi(getFile={"file_id": "F1", "file_path": "voice/file_1.oga"})
        api.downloads["voice/file_1.oga"] = b"clip-bytes"

        assert await make_channel(api).fetch_audio("F1") == b"clip-bytes"
        assert json.loads(api.calls("getFile")[0].content) == {"file_id": "F1"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "get_file", [None, {"file_id": "F1"}, {"file_id": "F1", "file_path": "missing.oga"}],
    )
    async def test_failures_become_recognition_failed(self, get_file):
        api = BotApi(getFile=get_file)
        with pytest.raises(RecognitionFailed):
            await make_channel(api).fetch_audio("F1")


class TestMisc:

    @pytest.mark.asyncio
    async def test_acknowledge(self):
        api = BotApi()
        await make_channel(api).acknowledge("cb-1")
        assert json.loads(api.calls("answerCallbackQuery")[0].content) == {
            "callback_query_id": "cb-1",
        }

    @pytest.mark.asyncio
    async def test_get_updates(self):
        api = BotApi(getUpdates=[{"update_id": 10}, {"update_id": 11}])
        updates = await make_channel(api).get_updates(offset=10, poll_timeout=5)

        assert [u["update_id"] for u in updates] == [10, 11]
        payload = json.loads(api.calls("getUpdates")[0].content)
        assert payload["offset"] == 10
        assert payload["timeout"] == 5

    @pytest.mark.asyncio
    async def test_set_webhook_with_secret(self):
        api = BotApi()
        await make_channel(api).set_webhook("https://bot.test/telegram/webhook", secret_token="s3")
        payload = json.loads(api.calls("setWebhook")[0].content)
        assert payload["url"] == "https://bot.test/telegram/webhook"
        assert payload["secret_token"] == "s3"

    @pytest.mark.asyncio
    async def test_custom_api_url(self):
        api = BotApi()
        client = httpx.AsyncClient(transport=httpx.MockTransport(api))
        channel = TelegramChannel(TOKEN, api_url="http://localhost:8081/", client=client)
        await channel.delete_webhook()
        assert str(api.requests[0].url) == f"http://localhost:8081/bot{TOKEN}/deleteWebhook"
