"""Error taxonomy for the survey engine.

Gateway implementations raise these; the engine catches them at the turn
boundary and converts them into messages for the respondent.  Answer
validation failures are not exceptions: the resolver returns a
``Rejected`` resolution carrying a :class:`RejectReason` instead.
"""

from enum import Enum


class RejectReason(str, Enum):
    """Why an utterance could not be accepted as an answer."""

    BAD_DATE_FORMAT = "bad_date_format"
    BAD_PHONE_FORMAT = "bad_phone_format"
    NO_MATCH = "no_match"
    EMPTY_ANSWER = "empty_answer"


class SurveyError(Exception):
    """Base class for every recoverable engine failure."""


class SourceUnavailable(SurveyError):
    """The question list could not be fetched or was malformed."""


class SubmissionFailed(SurveyError):
    """The collected answers could not be delivered to the form service."""


class RecognitionFailed(SurveyError):
    """A voice message could not be transcribed."""


class SpeechError(SurveyError):
    """Speech synthesis failed; spoken prompts are best effort."""


class ChannelError(SurveyError):
    """The messaging channel rejected or could not deliver a message."""
