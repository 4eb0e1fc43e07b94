"""Per-respondent session state.

A ``Session`` exists only while its respondent is mid-form: the engine
creates it on start and drops it on completion, abort, or "home".  All
operations here are plain in-memory mutations with no I/O.

Invariant: ``0 <= position <= len(question_set)``, and
``position == len(question_set)`` exactly when the form is complete.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from survey_engine.models.question import Question, QuestionSet
from survey_engine.models.submission import AnswerEntry, Submission


@dataclass
class Session:
    """Mutable progress of one respondent through one question set."""

    respondent_id: str
    question_set: QuestionSet
    position: int = 0
    answers: dict[str, str] = field(default_factory=dict)
    awaiting_input: bool = False

    @property
    def form_id(self) -> str:
        return self.question_set.form_id

    @property
    def total(self) -> int:
        return len(self.question_set)

    @property
    def is_complete(self) -> bool:
        return self.position >= self.total

    def current(self) -> Question | None:
        """The question at ``position``, or None once the form is complete."""
        if self.is_complete:
            return None
        return self.question_set[self.position]

    def record_answer(self, question_id: str, value: str) -> None:
        """Store an answer, replacing any earlier answer to the same question.

        A replaced answer moves to the end of the recording order.
        """
        self.answers.pop(question_id, None)
        self.answers[question_id] = value
        self.awaiting_input = False

    def advance(self) -> Question | None:
        if not self.is_complete:
            self.position += 1
        return self.current()

    def rewind(self) -> Question | None:
        # Clamped: going back from the first question stays put
        self.position = max(0, self.position - 1)
        return self.current()

    def try_skip(self) -> bool:
        """Move past the current question if it is optional.

        Returns False, leaving the position untouched, for required
        questions and when the form is already complete.
        """
        question = self.current()
        if question is None or question.required:
            return False
        self.position += 1
        return True

    def progress_label(self) -> str:
        """Human-readable progress, e.g. "Вопрос 2 из 5".

        Clamped to the last question once the form is complete.
        """
        return f"Вопрос {min(self.position + 1, self.total)} из {self.total}"

    def to_submission(self, respondent_id: str) -> Submission:
        return Submission(
            respondent_identifier=respondent_id,
            answers=[
                AnswerEntry(question_id=qid, value=value)
                for qid, value in self.answers.items()
            ],
        )
