"""Single-shot question request used when streaming is unavailable."""
from __future__ import annotations

import logging
from time import perf_counter

import httpx
from pydantic import ValidationError

from ..config import BackendSettings
from .exceptions import RequestFailedError
from .models import AcademicContext, Message, Session
from .params import question_params
from .schemas import QuestionRequest, QuestionResponse

LOGGER = logging.getLogger(__name__)


class FallbackRequestClient:
    """Ask ``POST /chat/question`` once and append the complete answer."""

    def __init__(self, session: Session, client: httpx.AsyncClient, settings: BackendSettings) -> None:
        self._session = session
        self._client = client
        self._settings = settings

    async def send(self, query: str, context: AcademicContext | None = None) -> Message:
        context = context or self._session.context
        payload = QuestionRequest(**question_params(query, context))
        LOGGER.info(
            "Question request started | session=%s query_chars=%d",
            self._session.session_id,
            len(query),
        )
        start_time = perf_counter()
        try:
            response = await self._client.post(
                self._settings.question_path,
                json=payload.model_dump(),
                timeout=self._settings.request_timeout,
            )
        except httpx.HTTPError as exc:
            LOGGER.warning("Question request unreachable | session=%s error=%s", self._session.session_id, exc)
            raise RequestFailedError(None, f"Failed to reach {self._settings.question_path}: {exc}", cause=exc) from exc

        if not response.is_success:
            LOGGER.warning(
                "Question request rejected | session=%s status=%d",
                self._session.session_id,
                response.status_code,
            )
            raise RequestFailedError(response.status_code)

        try:
            answer = QuestionResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise RequestFailedError(
                response.status_code, "Question response could not be parsed", cause=exc
            ) from exc

        message = self._session.add_assistant_message(answer.answer or "", answer.citations())
        LOGGER.info(
            "Question request finished | session=%s duration=%.2fs characters=%d",
            self._session.session_id,
            perf_counter() - start_time,
            len(message.text),
        )
        return message


__all__ = ["FallbackRequestClient"]
