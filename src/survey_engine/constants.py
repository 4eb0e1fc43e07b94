"""Survey engine constants shared across the SDK.

Command words are matched after the utterance is trimmed and lowercased,
so every entry here must already be lowercase.

The prompt pacing delay can be overridden via an environment variable so
that deployments can tune it without code changes.
"""

import os

# Navigation commands, checked in this order before any answer matching.
REPEAT_COMMANDS: frozenset[str] = frozenset({"0", "повторить", "повторить вопрос"})
PREVIOUS_COMMANDS: frozenset[str] = frozenset({"назад", "предыдущий вопрос"})
SKIP_COMMANDS: frozenset[str] = frozenset({"пропустить", "пропустить вопрос"})

# Top-level text commands honoured even when no prompt is awaiting input.
START_COMMAND = "/start"
HOME_COMMANDS: frozenset[str] = frozenset({"/home", "в начало"})
RESTART_COMMANDS: frozenset[str] = frozenset({"/restart", "пройти заново"})

# Tag identifying this bot in every submission payload.
SUBMISSION_SOURCE = "conversational-bot"

# Literal DD.MM.YYYY shape; calendar validity is not checked.
DATE_PATTERN = r"[0-9]{2}\.[0-9]{2}\.[0-9]{4}"

# A text question whose hint contains this marker expects a phone number.
PHONE_HINT_MARKER = "+7"
PHONE_PREFIXES: tuple[str, ...] = ("+7", "8")

# Seconds between confirming an answer and showing the next question.
# Overridable via PROMPT_DELAY_SECONDS env var.
DEFAULT_PROMPT_DELAY = float(os.getenv("PROMPT_DELAY_SECONDS", "0.5"))

# Question kinds whose answers are picked from a closed option list.
OPTION_KINDS: frozenset[str] = frozenset({"select", "checkbox"})
