import dataclasses

import httpx
import pytest

from services.relay_service.errors import UpstreamError, UpstreamUnreachable
from services.relay_service.invoker import SYSTEM_PROMPT, UpstreamInvoker


@pytest.mark.parametrize("question", ["What is a closure?", "  padded\n", "émoji 🐍 and \"quotes\""])
def test_build_request_has_system_then_user_message(config, question):
    request = UpstreamInvoker(config, httpx.AsyncClient()).build_request(question)

    assert [m.role for m in request.messages] == ["system", "user"]
    assert request.messages[0].content == SYSTEM_PROMPT
    assert request.messages[1].content == question
    assert request.model == "meta/llama3-70b-instruct"
    assert request.temperature == 0.5
    assert request.top_p == 1
    assert request.max_tokens == 1024


async def test_invoke_posts_payload_with_bearer_credential(config, upstream_factory):
    upstream = upstream_factory()
    async with httpx.AsyncClient(transport=upstream.transport()) as client:
        body = await UpstreamInvoker(config, client).invoke("What is a closure?")

    assert upstream.call_count == 1
    sent = upstream.requests[0]
    assert sent.method == "POST"
    assert str(sent.url) == config.upstream_url
    assert sent.headers["Authorization"] == "Bearer test-key"
    assert sent.headers["Content-Type"] == "application/json"
    assert upstream.last_payload() == {
        "model": "meta/llama3-70b-instruct",
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": "What is a closure?"},
        ],
        "temperature": 0.5,
        "top_p": 1,
        "max_tokens": 1024,
    }
    assert b'"content":"42"' in body.replace(b" ", b"")


async def test_missing_credential_omits_authorization_header(config, upstream_factory):
    upstream = upstream_factory(status_code=401, json_body={"title": "Unauthorized"})
    anonymous = dataclasses.replace(config, api_key="")

    async with httpx.AsyncClient(transport=upstream.transport()) as client:
        with pytest.raises(UpstreamError) as exc_info:
            await UpstreamInvoker(anonymous, client).invoke("hi")

    assert "Authorization" not in upstream.requests[0].headers
    assert exc_info.value.status_code == 401


@pytest.mark.parametrize("status_code", [400, 401, 404, 422, 429, 500, 503])
async def test_non_2xx_raises_upstream_error_without_retry(config, upstream_factory, status_code):
    upstream = upstream_factory(status_code=status_code, content=b"upstream says no")

    async with httpx.AsyncClient(transport=upstream.transport()) as client:
        with pytest.raises(UpstreamError) as exc_info:
            await UpstreamInvoker(config, client).invoke("hi")

    assert upstream.call_count == 1
    assert exc_info.value.status_code == status_code
    assert exc_info.value.body == "upstream says no"
    assert str(status_code) in exc_info.value.message
    assert "Body: upstream says no" in exc_info.value.message


async def test_2xx_other_than_200_is_accepted(config, upstream_factory):
    upstream = upstream_factory(status_code=201)
    async with httpx.AsyncClient(transport=upstream.transport()) as client:
        body = await UpstreamInvoker(config, client).invoke("hi")
    assert body


async def test_connection_refused_raises_unreachable_once(config, refused_upstream):
    async with httpx.AsyncClient(transport=refused_upstream.transport()) as client:
        with pytest.raises(UpstreamUnreachable) as exc_info:
            await UpstreamInvoker(config, client).invoke("hi")

    assert refused_upstream.call_count == 1
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Error sending request: Connection refused"
    assert isinstance(exc_info.value.cause, httpx.ConnectError)


async def test_timeout_raises_unreachable(config):
    def respond(request):
        raise httpx.ReadTimeout("", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(respond)) as client:
        with pytest.raises(UpstreamUnreachable) as exc_info:
            await UpstreamInvoker(config, client).invoke("hi")

    assert exc_info.value.message == "Error sending request: ReadTimeout"


@pytest.mark.parametrize("status_code", [301, 302, 304, 307])
async def test_redirects_are_not_followed(config, status_code):
    def respond(request):
        return httpx.Response(status_code, headers={"Location": "https://elsewhere.test/"}, content=b"moved")

    upstream = httpx.MockTransport(respond)
    async with httpx.AsyncClient(transport=upstream) as client:
        with pytest.raises(UpstreamError) as exc_info:
            await UpstreamInvoker(config, client).invoke("hi")

    assert exc_info.value.status_code == status_code
    assert exc_info.value.body == "moved"
