"""Callback tokens bound to inline actions.

Token grammar (``:``-separated)::

    start:<form_id>           begin a form version from the home menu
    restart:<form_id>         run the same form again after completion
    home                      drop the session, show the home menu
    repeat | previous | skip  navigation buttons under a question
    option:<qid>:<index>      pick option ``index`` (0-based) of question ``qid``

Option tokens carry the question id so a button left over from an
earlier question cannot answer the current one.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

TokenAction = Literal["start", "restart", "home", "repeat", "previous", "skip", "option"]

_NAVIGATION = ("repeat", "previous", "skip")


class CallbackToken(BaseModel):
    action: TokenAction
    form_id: Optional[str] = None
    question_id: Optional[str] = None
    index: Optional[int] = None


def start_token(form_id: str) -> str:
    return f"start:{form_id}"


def restart_token(form_id: str) -> str:
    return f"restart:{form_id}"


def option_token(question_id: str, index: int) -> str:
    return f"option:{question_id}:{index}"


def parse_token(token: str) -> CallbackToken | None:
    """Parse a callback token; returns None for anything malformed."""
    action, _, rest = token.partition(":")

    if action in ("home", *_NAVIGATION):
        return None if rest else CallbackToken(action=action)

    if action in ("start", "restart"):
        return CallbackToken(action=action, form_id=rest) if rest else None

    if action == "option":
        # qid may itself contain ':', the index is always last
        question_id, _, raw_index = rest.rpartition(":")
        if not question_id or not (raw_index.isascii() and raw_index.isdigit()):
            return None
        return CallbackToken(
            action="option", question_id=question_id, index=int(raw_index),
        )

    return None
