"""Resolution models — what an utterance means for the current question.

The resolver returns exactly one of these per turn and the engine
dispatches on ``type``:

  - NavigationCommand: repeat / previous / skip
  - SelectedOption: an option picked by number or exact text
  - ConfirmCandidate: a spoken partial match awaiting confirmation
  - FreeformAnswer: validated free text (date, textarea, text)
  - Rejected: not acceptable; carries the reason and, for option
    questions, the option list to show again
"""

from typing import Literal, Union

from pydantic import BaseModel

from survey_engine.errors import RejectReason


class NavigationCommand(BaseModel):
    type: Literal["navigation"] = "navigation"
    command: Literal["repeat", "previous", "skip"]


class SelectedOption(BaseModel):
    type: Literal["selected"] = "selected"
    # 0-based index into Question.options
    index: int


class ConfirmCandidate(BaseModel):
    """Speech partially matched exactly one option; ask before recording."""

    type: Literal["confirm"] = "confirm"
    index: int


class FreeformAnswer(BaseModel):
    type: Literal["freeform"] = "freeform"
    # Trimmed, original case
    text: str


class Rejected(BaseModel):
    type: Literal["rejected"] = "rejected"
    reason: RejectReason
    options: list[str] | None = None


Resolution = Union[
    NavigationCommand,
    SelectedOption,
    ConfirmCandidate,
    FreeformAnswer,
    Rejected,
]
