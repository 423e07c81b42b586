"""
Relay Handler -- validate, invoke upstream, extract.

Stages run strictly in order and any RelayError ends the request. Nothing is
kept between calls: two identical questions produce two upstream calls.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from shared.observability.metrics import relay_requests
from services.relay_service.config import RelayConfig
from services.relay_service.errors import InvalidBody, InvalidQuestion, RelayError, UpstreamError
from services.relay_service.extractor import extract_answer
from services.relay_service.invoker import UpstreamInvoker
from services.relay_service.models import AnswerResponse, ErrorResponse
from services.relay_service.validator import parse_question

logger = logging.getLogger(__name__)


class RelayHandler:
    def __init__(self, config: RelayConfig, client: httpx.AsyncClient) -> None:
        self._invoker = UpstreamInvoker(config, client)

    async def answer(self, raw_body: bytes | str) -> str:
        question = parse_question(raw_body)
        body = await self._invoker.invoke(question)
        return extract_answer(body)

    async def handle(self, raw_body: bytes | str) -> tuple[int, dict[str, Any]]:
        """Return ``(status_code, json_body)`` carrying exactly one of answer/error."""
        try:
            answer = await self.answer(raw_body)
        except RelayError as exc:
            relay_requests.labels(outcome=exc.kind).inc()
            self._log_failure(exc, raw_body)
            return exc.status_code, ErrorResponse(error=exc.message).model_dump()

        relay_requests.labels(outcome="answered").inc()
        logger.info("Answered question", extra={"_extra": {"answer_chars": len(answer)}})
        return 200, AnswerResponse(answer=answer).model_dump()

    @staticmethod
    def _log_failure(exc: RelayError, raw_body: bytes | str) -> None:
        request_text = raw_body.decode("utf-8", "replace") if isinstance(raw_body, bytes) else raw_body
        extra: dict[str, Any] = {
            "kind": exc.kind,
            "status_code": exc.status_code,
            "request_body": request_text,
        }
        if isinstance(exc, UpstreamError):
            extra["upstream_body"] = exc.body

        level = logging.WARNING if isinstance(exc, (InvalidBody, InvalidQuestion)) else logging.ERROR
        logger.log(level, "Chat request failed: %s", exc.kind, extra={"_extra": extra})
