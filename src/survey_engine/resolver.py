"""AnswerResolver — classifies an utterance against the current question.

Priority order (first match wins):

  1. normalise: trim + lowercase
  2. repeat commands ("0", "повторить", "повторить вопрос")
  3. previous commands ("назад", "предыдущий вопрос")
  4. skip commands ("пропустить", "пропустить вопрос")
  5. option questions (select/checkbox with options):
       a. number 1..n            → SelectedOption(n - 1)
       b. exact, case-insensitive → SelectedOption(index)
       c. speech only: exactly one option contains the text or is
          contained in it        → ConfirmCandidate(index)
       d. otherwise              → Rejected(no_match, options)
  6. free-text kinds             → FreeformAnswer(trimmed original text)

Typed text never gets a partial match: guessing what someone typed is
left to them.  ``resolve`` additionally runs the format rules from
:mod:`survey_engine.validation` on free-text candidates.
"""

from __future__ import annotations

import logging
import re

from survey_engine.constants import (
    PREVIOUS_COMMANDS,
    REPEAT_COMMANDS,
    SKIP_COMMANDS,
)
from survey_engine.errors import RejectReason
from survey_engine.models.question import Question
from survey_engine.models.resolution import (
    ConfirmCandidate,
    FreeformAnswer,
    NavigationCommand,
    Rejected,
    Resolution,
    SelectedOption,
)
from survey_engine.models.session import Session
from survey_engine.validation import validate_answer

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"[0-9]+")


def normalize(utterance: str) -> str:
    return utterance.strip().lower()


def match_command(normalized: str) -> NavigationCommand | None:
    """Map a normalised utterance to a navigation command, if it is one."""
    if normalized in REPEAT_COMMANDS:
        return NavigationCommand(command="repeat")
    if normalized in PREVIOUS_COMMANDS:
        return NavigationCommand(command="previous")
    if normalized in SKIP_COMMANDS:
        return NavigationCommand(command="skip")
    return None


def match_option(
    question: Question, normalized: str, *, from_speech: bool
) -> Resolution:
    """Resolve an utterance against a question's closed option list."""
    options = question.options
    rejected = Rejected(reason=RejectReason.NO_MATCH, options=list(options))

    if not normalized:
        return rejected

    # a. 1-based number
    if _NUMBER_RE.fullmatch(normalized):
        # Leading zeros aside, a valid number is never longer than the option count
        digits = normalized.lstrip("0") or "0"
        number = int(digits) if len(digits) <= len(str(len(options))) else 0
        if 1 <= number <= len(options):
            return SelectedOption(index=number - 1)

    lowered = [opt.lower() for opt in options]

    # b. exact, case-insensitive
    for index, value in enumerate(lowered):
        if value == normalized:
            return SelectedOption(index=index)

    # c. partial match in either direction, speech only
    if from_speech:
        candidates = [
            index for index, value in enumerate(lowered)
            if normalized in value or value in normalized
        ]
        if len(candidates) == 1:
            return ConfirmCandidate(index=candidates[0])
        if candidates:
            logger.debug(
                "Ambiguous partial match for %r in %s: %s",
                normalized, question.id, candidates,
            )

    return rejected


def classify(session: Session, utterance: str, *, from_speech: bool) -> Resolution:
    """Classify an utterance without applying format validation.

    Must only be called while the session has a current question.
    """
    question = session.current()
    if question is None:
        raise ValueError("Cannot classify an utterance: session is complete")

    normalized = normalize(utterance)

    command = match_command(normalized)
    if command is not None:
        return command

    if question.has_options:
        return match_option(question, normalized, from_speech=from_speech)

    return FreeformAnswer(text=utterance.strip())


def resolve(session: Session, utterance: str, *, from_speech: bool = False) -> Resolution:
    """Classify an utterance and validate any free-text answer it carries."""
    resolution = classify(session, utterance, from_speech=from_speech)

    if isinstance(resolution, FreeformAnswer):
        question = session.current()
        reason = validate_answer(question, resolution.text)
        if reason is not None:
            logger.debug(
                "Rejected answer for %s (%s): %s",
                question.id, question.kind, reason.value,
            )
            return Rejected(reason=reason)

    return resolution
