"""Question models for survey forms.

Each question kind maps to a rendering template and a validation rule:

  Option kinds (answered by number, exact text, or a confirmed partial
  match from speech):
    - select: pick one option
    - checkbox: pick one option per answer (same matching as select)

  Free-text kinds:
    - date: DD.MM.YYYY literal pattern
    - textarea: long free text
    - text: short free text; a "+7" hint turns on phone validation

A ``QuestionSet`` is loaded once per session and never mutated, so the
1-based number of every option stays stable for the whole session.
"""

from __future__ import annotations

from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from survey_engine.constants import OPTION_KINDS, PHONE_HINT_MARKER

QuestionKind = Literal["select", "checkbox", "date", "textarea", "text"]


class Question(BaseModel):
    """A single question as delivered by the question source."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    text: str
    kind: QuestionKind = "text"
    required: bool = False
    hint: Optional[str] = None
    options: Tuple[str, ...] = ()

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # Form services often hand out integer ids
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("options", mode="before")
    @classmethod
    def _none_options(cls, value):
        return () if value is None else value

    @property
    def has_options(self) -> bool:
        """True if answers are matched against a closed option list."""
        return self.kind in OPTION_KINDS and len(self.options) > 0

    @property
    def expects_phone(self) -> bool:
        """True for text questions whose hint announces a phone number."""
        return self.kind == "text" and PHONE_HINT_MARKER in (self.hint or "")

    def option_at(self, index: int) -> str:
        """Return the option for a 0-based index; raises IndexError if out of range."""
        if index < 0:
            raise IndexError(index)
        return self.options[index]


class QuestionSet(BaseModel):
    """The ordered, immutable question list of one form."""

    model_config = ConfigDict(frozen=True)

    form_id: str
    questions: Tuple[Question, ...] = Field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.questions)

    def __getitem__(self, index: int) -> Question:
        return self.questions[index]
