"""SurveyEngine — drives one conversation per respondent through a form.

The engine owns the :class:`SessionStore` and is the only code that
mutates sessions.  Every inbound event goes through :meth:`handle_event`,
which holds the respondent's turn lock until the reaction (including all
gateway calls and the pacing delay) has finished.

State machine per respondent::

    (no session) ──start──► in progress ──last answer / skip──► completed
         ▲                   │      ▲                               │
         └──────home─────────┘      └── repeat / previous / skip    │
         └──────────────── session discarded ◄──────────────────────┘

  - start:      load the question set (failure → no session), send the
                instructions, prompt the first question
  - in progress: utterances are resolved against the current question
                only while ``awaiting_input`` is set; otherwise only the
                home/restart commands are honoured
  - completed:  submit once, discard the session whether or not the
                submission succeeded, offer restart / home

Everything the respondent is told goes out as text and, best effort, as
speech: text failures abort the turn, speech failures are only logged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Sequence

from survey_engine.callbacks import parse_token, option_token, restart_token, start_token
from survey_engine.constants import (
    DEFAULT_PROMPT_DELAY,
    HOME_COMMANDS,
    RESTART_COMMANDS,
    START_COMMAND,
)
from survey_engine.errors import (
    ChannelError,
    RecognitionFailed,
    SourceUnavailable,
    SubmissionFailed,
    SurveyError,
)
from survey_engine.interfaces import (
    MessagingChannel,
    QuestionSource,
    SpeechProvider,
    SubmissionSink,
)
from survey_engine.models.channel import (
    CallbackPressed,
    InboundEvent,
    InlineAction,
    TextMessage,
    VoiceMessage,
)
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
from survey_engine.prompt import PromptManager, messages
from survey_engine.resolver import normalize, resolve
from survey_engine.store import SessionStore

logger = logging.getLogger(__name__)


class SurveyEngine:
    """Orchestrates survey sessions for any number of respondents.

    Args:
        source: where question sets are loaded from
        sink: where completed submissions are sent
        channel: the messaging channel respondents talk through
        speech: optional speech provider; without it voice messages
            cannot be transcribed and prompts are text only
        forms: form versions offered on the home menu, form id → label
        store: session store; a fresh one is created if omitted
        prompts: prompt renderer; defaults to the bundled templates
        prompt_delay: seconds to pause between confirming an answer and
            showing the next question
    """

    def __init__(
        self,
        *,
        source: QuestionSource,
        sink: SubmissionSink,
        channel: MessagingChannel,
        speech: SpeechProvider | None = None,
        forms: Mapping[str, str],
        store: SessionStore | None = None,
        prompts: PromptManager | None = None,
        prompt_delay: float = DEFAULT_PROMPT_DELAY,
    ) -> None:
        if not forms:
            raise ValueError("At least one form version must be configured")
        self._source = source
        self._sink = sink
        self._channel = channel
        self._speech = speech
        self._forms = dict(forms)
        self._store = store if store is not None else SessionStore()
        self._prompts = prompts if prompts is not None else PromptManager()
        self._prompt_delay = prompt_delay

    @property
    def store(self) -> SessionStore:
        return self._store

    # ==================================================================
    # Event entry point
    # ==================================================================

    async def handle_event(self, event: InboundEvent) -> None:
        """Process one inbound event to completion.

        Events of the same respondent are serialised; a failure ends the
        current turn (logged) but never propagates to the caller.
        """
        respondent_id = event.respondent_id
        async with self._store.turn(respondent_id):
            try:
                if isinstance(event, TextMessage):
                    await self._on_text(event)
                elif isinstance(event, VoiceMessage):
                    await self._on_voice(event)
                elif isinstance(event, CallbackPressed):
                    await self._on_callback(event)
                else:
                    logger.warning("Unsupported event type: %r", event)
            except SurveyError as exc:
                logger.warning(
                    "Turn for respondent %s ended early: %s: %s",
                    respondent_id, type(exc).__name__, exc,
                )
            except Exception:
                logger.exception("Unexpected error in turn for respondent %s", respondent_id)

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    async def show_home(self, respondent_id: str, *, greet_name: str | None = None) -> None:
        """Drop any active session and present the version-choice menu."""
        if self._store.discard(respondent_id) is not None:
            logger.info("Session discarded (home) for respondent %s", respondent_id)

        if greet_name is not None:
            await self.announce(
                respondent_id,
                messages.GREETING.format(name=greet_name or messages.DEFAULT_NAME),
            )

        actions = [
            InlineAction(label=label, token=start_token(form_id))
            for form_id, label in self._forms.items()
        ]
        await self.announce(respondent_id, messages.CHOOSE_VERSION, actions=actions)

    async def start(self, respondent_id: str, form_id: str) -> Session | None:
        """Load ``form_id`` and begin a new session (replacing any old one).

        Returns None, and creates no session, if the questions cannot be
        loaded.
        """
        try:
            question_set = await self._source.load(form_id)
        except SourceUnavailable as exc:
            logger.warning("Question source unavailable for form %s: %s", form_id, exc)
            question_set = None
        except Exception:
            logger.exception("Unexpected error loading form %s", form_id)
            question_set = None

        if question_set is None:
            # A stale session must not outlive a failed restart
            self._store.discard(respondent_id)
            await self.announce(
                respondent_id,
                messages.SOURCE_UNAVAILABLE,
                actions=self._finish_actions(form_id),
            )
            return None

        session = self._store.create(respondent_id, question_set)
        logger.info(
            "Session started: respondent=%s form=%s questions=%d",
            respondent_id, form_id, session.total,
        )
        await self.announce(respondent_id, messages.INSTRUCTIONS)
        await self.prompt_current(session)
        return session

    async def prompt_current(self, session: Session) -> None:
        """Show the current question, or complete the form if none is left."""
        if session.current() is None:
            await self.complete(session)
            return

        rendered = self._prompts.render_question(session)
        session.awaiting_input = True
        await self.announce(
            session.respondent_id,
            rendered.text,
            speech=rendered.speech,
            actions=rendered.actions,
        )

    async def complete(self, session: Session) -> bool:
        """Submit the answers and discard the session.

        The session is discarded whatever the outcome; a failed submission
        is never retried automatically.  Returns True on success.
        """
        respondent_id = session.respondent_id
        session.awaiting_input = False
        self._store.discard(respondent_id)
        submission = session.to_submission(respondent_id)

        try:
            await self._sink.submit(session.form_id, submission)
            succeeded = True
        except SubmissionFailed as exc:
            logger.warning(
                "Submission failed: respondent=%s form=%s: %s",
                respondent_id, session.form_id, exc,
            )
            succeeded = False
        except Exception:
            logger.exception(
                "Unexpected error submitting form %s for respondent %s",
                session.form_id, respondent_id,
            )
            succeeded = False

        if succeeded:
            logger.info(
                "Session completed: respondent=%s form=%s answers=%d",
                respondent_id, session.form_id, len(submission.answers),
            )

        await self.announce(
            respondent_id,
            messages.COMPLETED if succeeded else messages.SUBMISSION_FAILED,
            actions=self._finish_actions(session.form_id),
        )
        return succeeded

    # ==================================================================
    # Answer handling
    # ==================================================================

    async def submit_utterance(
        self, session: Session, utterance: str, *, from_speech: bool = False
    ) -> Resolution:
        """Resolve an utterance against the current question and apply it."""
        resolution = resolve(session, utterance, from_speech=from_speech)
        await self.apply(session, resolution)
        return resolution

    async def apply(self, session: Session, resolution: Resolution) -> None:
        """Apply a resolved utterance to the session."""
        question = session.current()
        if question is None:
            raise ValueError("Cannot apply an answer: session is complete")
        respondent_id = session.respondent_id

        if isinstance(resolution, NavigationCommand):
            await self._navigate(session, resolution.command)

        elif isinstance(resolution, SelectedOption):
            await self._record(session, question, question.option_at(resolution.index))

        elif isinstance(resolution, FreeformAnswer):
            await self._record(session, question, resolution.text)

        elif isinstance(resolution, ConfirmCandidate):
            option = question.option_at(resolution.index)
            await self.announce(
                respondent_id,
                messages.CONFIRM_CANDIDATE.format(option=option),
                actions=[
                    InlineAction(
                        label=messages.CONFIRM_LABEL,
                        token=option_token(question.id, resolution.index),
                    ),
                    InlineAction(label=messages.REPEAT_LABEL, token="repeat"),
                ],
            )

        elif isinstance(resolution, Rejected):
            rendered = self._prompts.render_rejection(resolution.reason, resolution.options)
            await self.announce(respondent_id, rendered.text, speech=rendered.speech)

        else:
            raise ValueError(f"Unknown resolution: {resolution!r}")

    async def _navigate(self, session: Session, command: str) -> None:
        respondent_id = session.respondent_id

        if command == "repeat":
            await self.prompt_current(session)

        elif command == "previous":
            if session.position == 0:
                await self.announce(respondent_id, messages.FIRST_QUESTION)
            else:
                session.rewind()
                await self.announce(respondent_id, messages.GOING_BACK)
            await self.prompt_current(session)

        elif command == "skip":
            if session.try_skip():
                await self.announce(respondent_id, messages.SKIPPED)
                await self.prompt_current(session)
            else:
                await self.announce(respondent_id, messages.CANNOT_SKIP)

        else:
            raise ValueError(f"Unknown navigation command: {command}")

    async def _record(self, session: Session, question: Question, value: str) -> None:
        session.record_answer(question.id, value)
        session.advance()
        try:
            await self.announce(session.respondent_id, messages.ANSWER_SAVED.format(value=value))
        except ChannelError:
            # The answer is kept; the next turn resumes at the new position
            session.awaiting_input = True
            raise
        if self._prompt_delay > 0:
            # Still inside the respondent's turn, so nothing can interleave
            await asyncio.sleep(self._prompt_delay)
        await self.prompt_current(session)

    # ==================================================================
    # Output
    # ==================================================================

    async def announce(
        self,
        respondent_id: str,
        text: str,
        *,
        speech: str | None = None,
        actions: Sequence[InlineAction] | None = None,
    ) -> None:
        """Send ``text`` to the respondent, then speak ``speech`` (or ``text``).

        Raises ChannelError if the text cannot be delivered; speech
        problems are logged and ignored.
        """
        try:
            await self._channel.send_text(respondent_id, text, actions)
        except ChannelError:
            raise
        except Exception as exc:
            raise ChannelError(f"Text delivery to {respondent_id} failed: {exc}") from exc

        await self._speak(respondent_id, speech if speech is not None else text)

    async def _speak(self, respondent_id: str, text: str) -> None:
        if self._speech is None:
            return
        try:
            audio = await self._speech.synthesize(text)
            await self._channel.send_audio(respondent_id, audio)
        except SurveyError as exc:
            logger.warning("Spoken prompt for %s dropped: %s", respondent_id, exc)
        except Exception:
            logger.exception("Unexpected error delivering spoken prompt to %s", respondent_id)

    def _finish_actions(self, form_id: str) -> list[InlineAction]:
        return [
            InlineAction(label=messages.RESTART_LABEL, token=restart_token(form_id)),
            InlineAction(label=messages.HOME_LABEL, token="home"),
        ]

    # ==================================================================
    # Internal: event handlers
    # ==================================================================

    async def _awaiting_session(self, respondent_id: str) -> Session | None:
        """The respondent's session if it takes answers, else None.

        A session whose last confirmation never got through is already
        past its final question; it is completed here instead.
        """
        session = self._store.get(respondent_id)
        if session is None or not session.awaiting_input:
            return None
        if session.is_complete:
            await self.complete(session)
            return None
        return session

    async def _on_text(self, event: TextMessage) -> None:
        respondent_id = event.respondent_id
        command = normalize(event.text)

        if _command_word(command) == START_COMMAND:
            await self.show_home(respondent_id, greet_name=event.display_name or "")
            return
        if command in HOME_COMMANDS:
            await self.show_home(respondent_id)
            return

        session = self._store.get(respondent_id)

        if command in RESTART_COMMANDS:
            if session is not None:
                await self.start(respondent_id, session.form_id)
            else:
                await self.show_home(respondent_id)
            return

        session = await self._awaiting_session(respondent_id)
        if session is None:
            logger.debug("Ignoring text from %s: no question awaiting input", respondent_id)
            return

        await self.submit_utterance(session, event.text)

    async def _on_voice(self, event: VoiceMessage) -> None:
        respondent_id = event.respondent_id
        session = await self._awaiting_session(respondent_id)
        if session is None:
            logger.debug("Ignoring voice from %s: no question awaiting input", respondent_id)
            return

        try:
            transcript = await self._transcribe(event.audio_ref)
        except RecognitionFailed as exc:
            logger.warning("Recognition failed for %s: %s", respondent_id, exc)
            await self.announce(respondent_id, messages.RECOGNITION_FAILED)
            return

        logger.debug("Transcript from %s: %r", respondent_id, transcript)
        await self.submit_utterance(session, transcript, from_speech=True)

    async def _transcribe(self, audio_ref: str) -> str:
        """Fetch and transcribe a voice clip; raises RecognitionFailed."""
        if self._speech is None:
            raise RecognitionFailed("No speech provider configured")
        try:
            audio = await self._channel.fetch_audio(audio_ref)
            transcript = await self._speech.recognize(audio)
        except RecognitionFailed:
            raise
        except Exception as exc:
            logger.exception("Unexpected error transcribing %s", audio_ref)
            raise RecognitionFailed(str(exc)) from exc

        if not transcript or not transcript.strip():
            raise RecognitionFailed("Empty transcript")
        return transcript

    async def _on_callback(self, event: CallbackPressed) -> None:
        respondent_id = event.respondent_id
        if event.callback_id is not None:
            try:
                await self._channel.acknowledge(event.callback_id)
            except Exception as exc:
                logger.warning("Callback acknowledgement failed: %s", exc)

        token = parse_token(event.token)
        if token is None:
            logger.warning("Ignoring malformed callback token %r", event.token)
            return

        if token.action in ("start", "restart"):
            if token.form_id not in self._forms:
                logger.warning("Ignoring unknown form %r from %s", token.form_id, respondent_id)
                return
            await self.start(respondent_id, token.form_id)
            return

        if token.action == "home":
            await self.show_home(respondent_id)
            return

        session = await self._awaiting_session(respondent_id)
        if session is None:
            logger.debug("Ignoring button from %s: no question awaiting input", respondent_id)
            return

        if token.action == "option":
            question = session.current()
            if token.question_id != question.id or token.index >= len(question.options):
                logger.debug("Ignoring stale option button from %s", respondent_id)
                return
            await self.apply(session, SelectedOption(index=token.index))
            return

        await self.apply(session, NavigationCommand(command=token.action))


def _command_word(command: str) -> str:
    """First word of a command with any ``@botname`` suffix dropped."""
    words = command.split(maxsplit=1)
    if not words:
        return ""
    return words[0].partition("@")[0]
