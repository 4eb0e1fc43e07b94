"""Abstract interfaces for the engine's external collaborators.

The engine only talks to the outside world through these ABCs; concrete
implementations live in ``survey_clients``.

Typical wiring::

    engine = SurveyEngine(
        source=FormApiClient(base_url),      # QuestionSource
        sink=FormApiClient(base_url),        # SubmissionSink
        channel=TelegramChannel(token),      # MessagingChannel
        speech=HttpSpeechProvider(url),      # SpeechProvider, optional
        forms={"main": "Анкета"},
    )
    await engine.handle_event(TextMessage(respondent_id="42", text="/start"))

Every implementation should apply a timeout to its network calls and
raise the matching :mod:`survey_engine.errors` type on failure.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from survey_engine.models.channel import InlineAction
from survey_engine.models.question import QuestionSet
from survey_engine.models.submission import Submission


class MessagingChannel(ABC):
    """Delivers messages to respondents and fetches their voice clips."""

    @abstractmethod
    async def send_text(
        self,
        respondent_id: str,
        text: str,
        actions: Sequence[InlineAction] | None = None,
    ) -> None:
        """Deliver a text message, optionally with inline actions.

        Raises
        ------
        ChannelError
            If the message could not be delivered.
        """
        ...

    @abstractmethod
    async def send_audio(self, respondent_id: str, audio: bytes) -> None:
        """Deliver an audio clip.  Raises ``ChannelError`` on failure."""
        ...

    @abstractmethod
    async def fetch_audio(self, audio_ref: str) -> bytes:
        """Download the audio clip behind an inbound voice reference.

        Raises ``RecognitionFailed`` if the clip cannot be retrieved.
        """
        ...

    async def acknowledge(self, callback_id: str) -> None:
        """Acknowledge a button press.  Channels without acks need not override."""
        return None


class QuestionSource(ABC):
    """Remote source of a form's ordered question list."""

    @abstractmethod
    async def load(self, form_id: str) -> QuestionSet:
        """Fetch the questions of ``form_id``.

        Raises ``SourceUnavailable`` if the source cannot be reached or
        returns malformed data.
        """
        ...


class SubmissionSink(ABC):
    """Remote receiver of completed answer sets."""

    @abstractmethod
    async def submit(self, form_id: str, submission: Submission) -> None:
        """Deliver a completed submission.  Raises ``SubmissionFailed``."""
        ...


class SpeechProvider(ABC):
    """Text-to-speech and speech-to-text conversion."""

    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        """Render text as audio.  Raises ``SpeechError`` on failure."""
        ...

    @abstractmethod
    async def recognize(self, audio: bytes) -> str | None:
        """Transcribe audio; None (or an empty string) means nothing was heard.

        Raises ``RecognitionFailed`` if the provider cannot be used.
        """
        ...
