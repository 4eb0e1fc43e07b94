"""Submission payload sent to the form service when a session completes."""

from typing import Literal

from pydantic import BaseModel

from survey_engine.constants import SUBMISSION_SOURCE


class AnswerEntry(BaseModel):
    """One recorded answer, flattened for the submission payload."""

    question_id: str
    value: str


class Submission(BaseModel):
    """Body of ``POST submit(form_id, payload)``.

    ``answers`` follows recording order, not question order: an answer
    changed after going back is listed after the answers recorded since.
    """

    source: Literal["conversational-bot"] = SUBMISSION_SOURCE
    respondent_identifier: str
    answers: list[AnswerEntry]
