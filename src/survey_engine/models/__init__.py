"""Public model re-exports for survey_engine.

Consumers should import from ``survey_engine.models`` rather than
reaching into sub-modules directly.
"""

# --- Channel events / actions ---
from survey_engine.models.channel import (
    CallbackPressed,
    InboundEvent,
    InlineAction,
    TextMessage,
    VoiceMessage,
)

# --- Questions ---
from survey_engine.models.question import Question, QuestionKind, QuestionSet

# --- Resolutions ---
from survey_engine.models.resolution import (
    ConfirmCandidate,
    FreeformAnswer,
    NavigationCommand,
    Rejected,
    Resolution,
    SelectedOption,
)

# --- Session / submission ---
from survey_engine.models.session import Session
from survey_engine.models.submission import AnswerEntry, Submission

__all__ = [
    # Channel
    "CallbackPressed",
    "InboundEvent",
    "InlineAction",
    "TextMessage",
    "VoiceMessage",
    # Questions
    "Question",
    "QuestionKind",
    "QuestionSet",
    # Resolutions
    "ConfirmCandidate",
    "FreeformAnswer",
    "NavigationCommand",
    "Rejected",
    "Resolution",
    "SelectedOption",
    # Session
    "AnswerEntry",
    "Session",
    "Submission",
]
