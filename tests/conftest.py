from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from services.relay_service.config import RelayConfig

UPSTREAM_URL = "https://upstream.test/v1/chat/completions"


class RecordingUpstream:
    """MockTransport handler that records every request it receives."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]) -> None:
        self._respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._respond(request)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def last_payload(self) -> dict:
        return json.loads(self.requests[-1].content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def completion(content: str = "42") -> dict:
    return {
        "id": "cmpl-1",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


@pytest.fixture
def config() -> RelayConfig:
    return RelayConfig(
        api_key="test-key",
        upstream_url=UPSTREAM_URL,
        model="meta/llama3-70b-instruct",
        timeout_seconds=5.0,
        cors_origin="http://localhost:5173",
        log_level="DEBUG",
        host="127.0.0.1",
        port=8000,
    )


@pytest.fixture
def upstream_factory() -> Callable[..., RecordingUpstream]:
    def make(status_code: int = 200, json_body=None, content: bytes | None = None) -> RecordingUpstream:
        def respond(request: httpx.Request) -> httpx.Response:
            if content is not None:
                return httpx.Response(status_code, content=content)
            return httpx.Response(status_code, json=completion() if json_body is None else json_body)

        return RecordingUpstream(respond)

    return make


@pytest.fixture
def refused_upstream() -> RecordingUpstream:
    def respond(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    return RecordingUpstream(respond)
