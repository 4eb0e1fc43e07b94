"""Server configuration — reads settings from environment variables.

All settings have defaults suitable for local development except the
Telegram bot token, which must be provided to talk to Telegram.  In
production the values are typically injected via env vars or a ``.env``
file loaded by the process manager.
"""

import os
from dataclasses import dataclass, field

# Offered on the home menu when SURVEY_FORMS is not set
DEFAULT_FORMS: dict[str, str] = {"main": "Анкета"}


def parse_forms(raw: str | None) -> dict[str, str]:
    """Parse ``"form_id:Label,other:Other label"`` into an ordered mapping.

    An entry without a label uses the form id as its label.
    """
    if not raw or not raw.strip():
        return dict(DEFAULT_FORMS)
    forms: dict[str, str] = {}
    for entry in raw.split(","):
        form_id, _, label = entry.strip().partition(":")
        form_id = form_id.strip()
        if form_id:
            forms[form_id] = label.strip() or form_id
    return forms or dict(DEFAULT_FORMS)


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # Logging
    log_level: str = "INFO"

    # Telegram
    telegram_token: str | None = None
    telegram_api_url: str = "https://api.telegram.org"
    # Shared secret Telegram echoes in X-Telegram-Bot-Api-Secret-Token
    webhook_secret: str | None = None
    # Public URL registered with setWebhook at startup (None = leave as is)
    webhook_url: str | None = None
    # Long-polling wait in seconds (survey-bot)
    poll_timeout: int = 30

    # Form service; FORM_DIR switches the question source to local YAML
    form_api_url: str = "http://localhost:8000/api"
    form_api_token: str | None = None
    form_dir: str | None = None
    forms: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_FORMS))

    # Speech service (None disables voice input and spoken prompts)
    speech_api_url: str | None = None
    speech_language: str = "ru"
    speech_voice: str | None = None
    # Directory for temporary voice files (None = system temp dir)
    audio_dir: str | None = None

    # Per-request timeout for every outbound HTTP call, in seconds
    http_timeout: float = 10.0
    # Pause between an answer confirmation and the next question
    prompt_delay: float = 0.5


def load_settings() -> ServerSettings:
    """Build settings from environment variables."""
    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        telegram_token=os.getenv("TELEGRAM_BOT_TOKEN") or os.getenv("BOT_TOKEN") or None,
        telegram_api_url=os.getenv("TELEGRAM_API_URL", "https://api.telegram.org"),
        webhook_secret=os.getenv("TELEGRAM_WEBHOOK_SECRET") or None,
        webhook_url=os.getenv("TELEGRAM_WEBHOOK_URL") or None,
        poll_timeout=int(os.getenv("POLL_TIMEOUT", "30")),
        form_api_url=os.getenv("FORM_API_URL", "http://localhost:8000/api"),
        form_api_token=os.getenv("FORM_API_TOKEN") or None,
        form_dir=os.getenv("FORM_DIR") or None,
        forms=parse_forms(os.getenv("SURVEY_FORMS")),
        speech_api_url=os.getenv("SPEECH_API_URL") or None,
        speech_language=os.getenv("SPEECH_LANGUAGE", "ru"),
        speech_voice=os.getenv("SPEECH_VOICE") or None,
        audio_dir=os.getenv("AUDIO_DIR") or None,
        http_timeout=float(os.getenv("HTTP_TIMEOUT", "10")),
        prompt_delay=float(os.getenv("PROMPT_DELAY_SECONDS", "0.5")),
    )
