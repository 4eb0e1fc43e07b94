"""Runtime wiring — builds the engine and its gateways from settings.

Shared by the webhook server and the polling runner so both start the
exact same engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from survey_clients.form_file import YamlQuestionSource
from survey_clients.forms import FormApiClient
from survey_clients.speech import HttpSpeechProvider
from survey_clients.telegram import TelegramChannel
from survey_engine.engine import SurveyEngine
from survey_engine.interfaces import QuestionSource

from survey_server.config import ServerSettings

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """The engine plus the clients that must be closed on shutdown."""

    engine: SurveyEngine
    channel: TelegramChannel
    closables: list = field(default_factory=list)

    async def aclose(self) -> None:
        for client in self.closables:
            await client.aclose()
        self.closables.clear()


def build_runtime(settings: ServerSettings) -> Runtime:
    """Create every client and the engine; raises ValueError if misconfigured."""
    if not settings.telegram_token:
        raise ValueError("TELEGRAM_BOT_TOKEN is not set")

    channel = TelegramChannel(
        settings.telegram_token,
        api_url=settings.telegram_api_url,
        timeout=settings.http_timeout,
        audio_dir=settings.audio_dir,
    )
    form_api = FormApiClient(
        settings.form_api_url,
        api_token=settings.form_api_token,
        timeout=settings.http_timeout,
    )
    closables: list = [channel, form_api]

    source: QuestionSource = form_api
    if settings.form_dir:
        source = YamlQuestionSource(settings.form_dir)
        logger.info("Loading questions from %s", settings.form_dir)

    speech = None
    if settings.speech_api_url:
        speech = HttpSpeechProvider(
            settings.speech_api_url,
            language=settings.speech_language,
            voice=settings.speech_voice,
            timeout=settings.http_timeout,
        )
        closables.append(speech)
    else:
        logger.info("SPEECH_API_URL not set: voice input and spoken prompts disabled")

    engine = SurveyEngine(
        source=source,
        sink=form_api,
        channel=channel,
        speech=speech,
        forms=settings.forms,
        prompt_delay=settings.prompt_delay,
    )
    return Runtime(engine=engine, channel=channel, closables=closables)
