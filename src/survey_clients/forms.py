"""FormApiClient — HTTP client for the remote form service.

Implements both halves of the form service contract:

    GET  {base_url}/forms/{form_id}/questions    → question list
    POST {base_url}/forms/{form_id}/submissions  ← Submission payload

The question endpoint may answer with a bare JSON list or with an object
holding a ``questions`` list.  Every request is bounded by ``timeout``;
transport errors, timeouts, non-2xx responses, and malformed payloads
are all raised as the engine's error types.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from survey_engine.errors import SourceUnavailable, SubmissionFailed
from survey_engine.interfaces import QuestionSource, SubmissionSink
from survey_engine.models.question import QuestionSet
from survey_engine.models.submission import Submission

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class FormApiClient(QuestionSource, SubmissionSink):
    """Async client for the question and submission endpoints.

    Args:
        base_url: root URL of the form service API
        api_token: optional bearer token sent with every request
        timeout: per-request timeout in seconds
        client: pre-built ``httpx.AsyncClient`` (tests inject one with a
            mock transport); when given, ``base_url`` is still used to
            build request URLs
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        headers = {"Authorization": f"Bearer {api_token}"} if api_token else {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=headers)
        self._timeout = timeout

    async def __aenter__(self) -> FormApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # QuestionSource
    # ------------------------------------------------------------------

    async def load(self, form_id: str) -> QuestionSet:
        url = f"{self._base_url}/forms/{form_id}/questions"
        try:
            resp = await self._client.get(url, timeout=self._timeout)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.TimeoutException as exc:
            raise SourceUnavailable(f"Timed out fetching questions for {form_id}") from exc
        except httpx.HTTPStatusError as exc:
            raise SourceUnavailable(
                f"Question source returned HTTP {exc.response.status_code} for {form_id}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SourceUnavailable(f"Question source unreachable: {exc}") from exc
        except ValueError as exc:
            raise SourceUnavailable(f"Question source sent invalid JSON for {form_id}") from exc

        return parse_question_set(form_id, payload)

    # ------------------------------------------------------------------
    # SubmissionSink
    # ------------------------------------------------------------------

    async def submit(self, form_id: str, submission: Submission) -> None:
        url = f"{self._base_url}/forms/{form_id}/submissions"
        try:
            resp = await self._client.post(
                url, json=submission.model_dump(mode="json"), timeout=self._timeout,
            )
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            raise SubmissionFailed(f"Timed out submitting form {form_id}") from exc
        except httpx.HTTPStatusError as exc:
            raise SubmissionFailed(
                f"Submission endpoint returned HTTP {exc.response.status_code} for {form_id}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SubmissionFailed(f"Submission endpoint unreachable: {exc}") from exc

        logger.info(
            "Submitted form %s for respondent %s (%d answers)",
            form_id, submission.respondent_identifier, len(submission.answers),
        )


def parse_question_set(form_id: str, payload: Any) -> QuestionSet:
    """Validate a raw question payload into a ``QuestionSet``.

    Accepts a list of question dicts or ``{"questions": [...]}``; raises
    ``SourceUnavailable`` for anything else.
    """
    questions = payload.get("questions") if isinstance(payload, dict) else payload
    if not isinstance(questions, list):
        raise SourceUnavailable(f"Malformed question list for {form_id}: expected a list")
    try:
        return QuestionSet(form_id=form_id, questions=questions)
    except ValidationError as exc:
        raise SourceUnavailable(f"Malformed question list for {form_id}: {exc}") from exc
