"""YamlQuestionSource — reads form definitions from local YAML files.

Used for development and offline demos instead of the form service.
Each form lives in ``<form_dir>/<form_id>.yaml`` and uses the same shape
as the question API::

    questions:
      - id: q1
        text: Вы пользуетесь программой экранного доступа?
        kind: select
        required: true
        options: [Да, Нет]
      - id: q2
        text: Ваш телефон
        kind: text
        hint: "Формат: +7XXXXXXXXXX"
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import yaml

from survey_engine.errors import SourceUnavailable
from survey_engine.interfaces import QuestionSource
from survey_engine.models.question import QuestionSet
from survey_clients.forms import parse_question_set

logger = logging.getLogger(__name__)


def _read_yaml(path: Path):
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


class YamlQuestionSource(QuestionSource):
    """Loads ``<form_dir>/<form_id>.yaml`` on every ``load`` call."""

    def __init__(self, form_dir: str | Path) -> None:
        self._base = Path(form_dir)

    async def load(self, form_id: str) -> QuestionSet:
        # Form ids come from callback tokens; never let them leave form_dir
        if not form_id or "/" in form_id or "\\" in form_id or form_id.startswith("."):
            raise SourceUnavailable(f"Invalid form id: {form_id!r}")

        path = self._base / f"{form_id}.yaml"
        try:
            payload = await asyncio.to_thread(_read_yaml, path)
        except FileNotFoundError as exc:
            raise SourceUnavailable(f"Missing form file: {path}") from exc
        except (OSError, yaml.YAMLError) as exc:
            raise SourceUnavailable(f"Cannot read form file {path}: {exc}") from exc

        question_set = parse_question_set(form_id, payload)
        logger.debug("Loaded %d questions from %s", len(question_set), path)
        return question_set
