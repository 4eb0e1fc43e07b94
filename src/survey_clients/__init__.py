"""survey_clients — concrete gateways for the survey engine.

This package provides httpx-based clients for the form service, the
speech service and the Telegram Bot API, plus a YAML question source
for offline use.  It is consumed by ``survey_server``.
"""

from survey_clients.form_file import YamlQuestionSource
from survey_clients.forms import FormApiClient, parse_question_set
from survey_clients.speech import HttpSpeechProvider
from survey_clients.telegram import TelegramChannel, layout_keyboard, parse_update

__all__ = [
    "FormApiClient",
    "HttpSpeechProvider",
    "TelegramChannel",
    "YamlQuestionSource",
    "layout_keyboard",
    "parse_question_set",
    "parse_update",
]
