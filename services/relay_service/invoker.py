"""
Chat-completion client for the upstream API.

Speaks the OpenAI Chat Completions wire format (NVIDIA NIM by default). One
call per question, no retries: a transport failure or a non-2xx status ends
the request.
"""

from __future__ import annotations

import logging
import time

import httpx

from shared.observability.metrics import upstream_request_seconds
from services.relay_service.config import RelayConfig
from services.relay_service.errors import UpstreamError, UpstreamUnreachable
from services.relay_service.models import ChatMessage, UpstreamRequest

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an AI that provides direct answers to coding questions."
TEMPERATURE = 0.5
TOP_P = 1.0
MAX_TOKENS = 1024


class UpstreamInvoker:
    """
    Sends a question to the configured completion endpoint.

    The ``httpx.AsyncClient`` is owned by the caller and shared across
    requests; the invoker keeps no other state.
    """

    def __init__(self, config: RelayConfig, client: httpx.AsyncClient) -> None:
        self._config = config
        self._client = client

    def build_request(self, question: str) -> UpstreamRequest:
        return UpstreamRequest(
            model=self._config.model,
            messages=[
                ChatMessage(role="system", content=SYSTEM_PROMPT),
                ChatMessage(role="user", content=question),
            ],
            temperature=TEMPERATURE,
            top_p=TOP_P,
            max_tokens=MAX_TOKENS,
        )

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        # Without a key the upstream rejects the call and that status is relayed.
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return headers

    async def invoke(self, question: str) -> bytes:
        """Return the raw body of a 2xx upstream response."""
        payload = self.build_request(question).model_dump_json()
        logger.debug("Sending request to upstream API: %s", payload)

        start = time.monotonic()
        try:
            resp = await self._client.post(
                self._config.upstream_url,
                content=payload,
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            logger.error("Error sending request to %s: %r", self._config.upstream_url, exc)
            raise UpstreamUnreachable(exc) from exc
        finally:
            elapsed = time.monotonic() - start
            upstream_request_seconds.observe(elapsed)

        logger.info(
            "Upstream responded %d %s in %.2fs",
            resp.status_code,
            resp.reason_phrase,
            elapsed,
        )
        logger.debug("Upstream response body: %s", resp.text)

        if not resp.is_success:
            raise UpstreamError(resp.status_code, resp.reason_phrase, resp.text)

        return resp.content
