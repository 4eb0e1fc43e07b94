"""survey_engine — conversation session engine for chat/voice surveys.

Public API:
    SurveyEngine    — orchestrates sessions: start, answer, navigate, submit
    SessionStore    — in-memory sessions keyed by respondent, with turn locks
    PromptManager   — renders questions as chat text and as speech
    resolve         — classify and validate an utterance for a session
    Session         — per-respondent progress through a question set
    Question        — one question (select/checkbox/date/textarea/text)
    QuestionSet     — the immutable ordered question list of a form

Gateway interfaces (implemented in ``survey_clients``):
    MessagingChannel, QuestionSource, SubmissionSink, SpeechProvider
"""

from survey_engine.engine import SurveyEngine
from survey_engine.errors import (
    ChannelError,
    RecognitionFailed,
    RejectReason,
    SourceUnavailable,
    SpeechError,
    SubmissionFailed,
    SurveyError,
)
from survey_engine.interfaces import (
    MessagingChannel,
    QuestionSource,
    SpeechProvider,
    SubmissionSink,
)
from survey_engine.models import (
    CallbackPressed,
    InboundEvent,
    InlineAction,
    Question,
    QuestionSet,
    Session,
    Submission,
    TextMessage,
    VoiceMessage,
)
from survey_engine.prompt import PromptManager
from survey_engine.resolver import resolve
from survey_engine.store import SessionStore

__all__ = [
    # Engine & store
    "SurveyEngine",
    "SessionStore",
    "PromptManager",
    "resolve",
    # Models
    "CallbackPressed",
    "InboundEvent",
    "InlineAction",
    "Question",
    "QuestionSet",
    "Session",
    "Submission",
    "TextMessage",
    "VoiceMessage",
    # Interfaces
    "MessagingChannel",
    "QuestionSource",
    "SpeechProvider",
    "SubmissionSink",
    # Errors
    "ChannelError",
    "RecognitionFailed",
    "RejectReason",
    "SourceUnavailable",
    "SpeechError",
    "SubmissionFailed",
    "SurveyError",
]
