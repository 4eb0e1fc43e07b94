"""Answer format rules, dispatched by question kind.

``validate_answer`` runs after the resolver has produced a candidate
value and before the engine records it.  Rules are looked up through
``_KIND_VALIDATORS`` rather than subclassing per question kind.
"""

from __future__ import annotations

import re
from typing import Callable, Optional

from survey_engine.constants import DATE_PATTERN, PHONE_PREFIXES
from survey_engine.errors import RejectReason
from survey_engine.models.question import Question

_DATE_RE = re.compile(DATE_PATTERN)

Validator = Callable[[Question, str], Optional[RejectReason]]


def is_valid_date(value: str) -> bool:
    """True if ``value`` is literally DD.MM.YYYY (no calendar check)."""
    return _DATE_RE.fullmatch(value) is not None


def is_valid_phone(value: str) -> bool:
    return value.startswith(PHONE_PREFIXES)


def _validate_date(question: Question, value: str) -> RejectReason | None:
    if not is_valid_date(value):
        return RejectReason.BAD_DATE_FORMAT
    return None


def _validate_text(question: Question, value: str) -> RejectReason | None:
    if question.expects_phone and not is_valid_phone(value):
        return RejectReason.BAD_PHONE_FORMAT
    return None


def _no_constraint(question: Question, value: str) -> RejectReason | None:
    return None


_KIND_VALIDATORS: dict[str, Validator] = {
    "date": _validate_date,
    "text": _validate_text,
    "textarea": _no_constraint,
    "select": _no_constraint,
    "checkbox": _no_constraint,
}


def validate_answer(question: Question, value: str) -> RejectReason | None:
    """Return the rejection reason for ``value``, or None if it is acceptable."""
    if not value.strip():
        return RejectReason.EMPTY_ANSWER
    validator = _KIND_VALIDATORS.get(question.kind, _no_constraint)
    return validator(question, value)
