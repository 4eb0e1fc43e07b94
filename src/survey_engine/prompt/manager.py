"""PromptManager — Jinja2-based renderer for question prompts.

Loads templates from the ``template/`` directory and renders the current
question of a ``Session`` twice: once as chat text (numbered options,
format hints) and once as a plain spoken variant for speech synthesis.

Templates are dispatched by question kind through ``_KIND_TEMPLATES``.
Option kinds without any options fall back to the free-text template,
matching how the resolver treats them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import jinja2
from pydantic import BaseModel, Field

from survey_engine.callbacks import option_token
from survey_engine.errors import RejectReason
from survey_engine.models.channel import InlineAction
from survey_engine.models.question import Question
from survey_engine.models.session import Session
from survey_engine.prompt import messages

# --- kind-to-template mapping ---
_KIND_TEMPLATES: dict[str, str] = {
    "select": "options.jinja2",
    "checkbox": "options.jinja2",
    "date": "date.jinja2",
    "textarea": "free_text.jinja2",
    "text": "free_text.jinja2",
}
_FALLBACK_TEMPLATE = "free_text.jinja2"

_REJECTION_MESSAGES: dict[RejectReason, str] = {
    RejectReason.BAD_DATE_FORMAT: messages.BAD_DATE_FORMAT,
    RejectReason.BAD_PHONE_FORMAT: messages.BAD_PHONE_FORMAT,
    RejectReason.NO_MATCH: messages.NO_MATCH,
    RejectReason.EMPTY_ANSWER: messages.EMPTY_ANSWER,
}


class RenderedPrompt(BaseModel):
    """A message in both renderings, plus the inline actions to attach."""

    text: str
    speech: str
    actions: list[InlineAction] = Field(default_factory=list)


def _tidy(rendered: str) -> list[str]:
    return [line.strip() for line in rendered.splitlines() if line.strip()]


class PromptManager:
    """Renders questions and rejections for the chat and for speech.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            # Plain text output, never HTML
            autoescape=False,
        )

    def render(self, template_name: str, **context) -> str:
        """Render a named template with arbitrary context."""
        template = self._env.get_template(template_name)
        return template.render(**context)

    def render_question(self, session: Session) -> RenderedPrompt:
        """Render the session's current question with its inline actions.

        Raises ValueError if the session is already complete.
        """
        question = session.current()
        if question is None:
            raise ValueError("No current question to render: session is complete")

        template_name = self._template_for(question)
        context = {"question": question, "progress": session.progress_label()}
        text = "\n".join(_tidy(self.render(template_name, spoken=False, **context)))
        speech = " ".join(_tidy(self.render(template_name, spoken=True, **context)))

        return RenderedPrompt(
            text=text,
            speech=speech,
            actions=self.question_actions(question),
        )

    def render_rejection(
        self,
        reason: RejectReason,
        options: Sequence[str] | None = None,
    ) -> RenderedPrompt:
        """Render the guidance shown when an answer is rejected."""
        context = {
            "message": _REJECTION_MESSAGES[reason],
            "options": list(options or ()),
        }
        text = "\n".join(_tidy(self.render("rejected.jinja2", spoken=False, **context)))
        speech = " ".join(_tidy(self.render("rejected.jinja2", spoken=True, **context)))
        return RenderedPrompt(text=text, speech=speech)

    def question_actions(self, question: Question) -> list[InlineAction]:
        """Option buttons (if any) followed by the navigation buttons."""
        actions: list[InlineAction] = []
        if question.has_options:
            actions.extend(
                InlineAction(
                    label=f"{index + 1}. {option}",
                    token=option_token(question.id, index),
                )
                for index, option in enumerate(question.options)
            )
        actions.append(InlineAction(label=messages.REPEAT_LABEL, token="repeat"))
        actions.append(InlineAction(label=messages.PREVIOUS_LABEL, token="previous"))
        if not question.required:
            actions.append(InlineAction(label=messages.SKIP_LABEL, token="skip"))
        actions.append(InlineAction(label=messages.HOME_LABEL, token="home"))
        return actions

    # --- Internal helpers ---

    @staticmethod
    def _template_for(question: Question) -> str:
        if question.kind in ("select", "checkbox") and not question.has_options:
            return _FALLBACK_TEMPLATE
        return _KIND_TEMPLATES.get(question.kind, _FALLBACK_TEMPLATE)
