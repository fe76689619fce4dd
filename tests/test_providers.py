from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from backend.config import DEEPSEEK_API_URL, GEMINI_API_BASE, OPENROUTER_API_URL, ProviderSettings
from backend.errors import (
    EmptyResponseError,
    ProviderConfigurationError,
    RetryableProviderError,
    TerminalProviderError,
)
from backend.schemas import ImagePayload
from backend.services.providers import (
    DeepSeekClient,
    GeminiClient,
    OpenRouterClient,
    classify_http_error,
)

GOOD_KEY = "test-key-0123456789"
IMAGE = ImagePayload(data=b"\xff\xd8\xff\xe0fake-jpeg", mime_type="image/jpeg")


def _gemini_settings(keys=None, max_tokens: int = 2048) -> ProviderSettings:
    return ProviderSettings(
        name="gemini-vision",
        endpoint=GEMINI_API_BASE,
        model="models/gemini-2.5-flash",
        api_keys=keys if keys is not None else [GOOD_KEY],
        max_tokens=max_tokens,
        temperature=0.4,
    )


def _chat_settings(name: str, endpoint: str, model: str) -> ProviderSettings:
    return ProviderSettings(name=name, endpoint=endpoint, model=model, api_keys=[GOOD_KEY], max_tokens=1500)


def _gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _recording_client(responses: list, seen: list) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        item = responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def _run(client_factory, call):
    async with client_factory() as http:
        return await call(http)


def test_gemini_request_shape_and_text_extraction() -> None:
    seen: list = []
    responses = [httpx.Response(200, json=_gemini_reply('{"pestName": "Aphids"}'))]

    async def call(http):
        return await GeminiClient(_gemini_settings(), http).complete("identify the pest", IMAGE)

    raw = asyncio.run(_run(lambda: _recording_client(responses, seen), call))

    assert raw == '{"pestName": "Aphids"}'
    request = seen[0]
    assert str(request.url) == f"{GEMINI_API_BASE}/models/gemini-2.5-flash:generateContent"
    assert request.headers["x-goog-api-key"] == GOOD_KEY
    body = json.loads(request.content)
    parts = body["contents"][0]["parts"]
    assert parts[0] == {"text": "identify the pest"}
    assert parts[1]["inline_data"]["mime_type"] == "image/jpeg"
    assert body["generationConfig"]["maxOutputTokens"] == 2048


def test_gemini_rotates_key_on_quota() -> None:
    seen: list = []
    second_key = "second-key-0123456789"
    responses = [
        httpx.Response(429, json={"error": {"message": "Resource has been exhausted"}}),
        httpx.Response(200, json=_gemini_reply("answer from second key")),
    ]

    async def call(http):
        return await GeminiClient(_gemini_settings([GOOD_KEY, second_key]), http).request("hi")

    raw = asyncio.run(_run(lambda: _recording_client(responses, seen), call))

    assert raw == "answer from second key"
    assert [r.headers["x-goog-api-key"] for r in seen] == [GOOD_KEY, second_key]


def test_placeholder_key_fails_before_any_io() -> None:
    seen: list = []

    async def call(http):
        return await GeminiClient(_gemini_settings(["your_gemini_api_key_here"]), http).request("hi")

    with pytest.raises(ProviderConfigurationError):
        asyncio.run(_run(lambda: _recording_client([], seen), call))

    assert seen == []


@pytest.mark.parametrize(
    "status, body, expected",
    [
        (500, "internal error", RetryableProviderError),
        (503, "The model is overloaded", RetryableProviderError),
        (400, "bad request", TerminalProviderError),
        (401, "unauthorized", TerminalProviderError),
        (403, "forbidden", TerminalProviderError),
        (404, "model not found", TerminalProviderError),
        (429, "rate limited", TerminalProviderError),
        (503, "You exceeded your current quota", TerminalProviderError),
        (409, "service temporarily unavailable", RetryableProviderError),
    ],
)
def test_http_error_classification(status, body, expected) -> None:
    error = classify_http_error("deepseek-chat", status, body)

    assert type(error) is expected
    assert error.status_code == status


def test_transport_errors_are_retryable() -> None:
    responses = [httpx.ConnectError("connection refused")]

    async def call(http):
        return await DeepSeekClient(_chat_settings("deepseek-chat", DEEPSEEK_API_URL, "deepseek-chat"), http).request("q")

    with pytest.raises(RetryableProviderError):
        asyncio.run(_run(lambda: _recording_client(responses, []), call))


def test_truncated_answer_is_reissued_with_double_budget() -> None:
    seen: list = []
    responses = [
        httpx.Response(200, json=_gemini_reply('{"pestName": "Whitefly", "symptoms": ["Yellowing"')),
        httpx.Response(200, json=_gemini_reply('{"pestName": "Whitefly", "symptoms": ["Yellowing"]}')),
    ]

    async def call(http):
        return await GeminiClient(_gemini_settings(max_tokens=1000), http).complete("identify", IMAGE)

    raw = asyncio.run(_run(lambda: _recording_client(responses, seen), call))

    assert raw.endswith("]}")
    budgets = [json.loads(r.content)["generationConfig"]["maxOutputTokens"] for r in seen]
    assert budgets == [1000, 2000]


def test_failed_reissue_keeps_first_answer() -> None:
    responses = [
        httpx.Response(200, json=_gemini_reply("Looks like early bollworm damage...")),
        httpx.Response(503, text="overloaded"),
    ]

    async def call(http):
        return await GeminiClient(_gemini_settings(), http).complete("identify", IMAGE)

    raw = asyncio.run(_run(lambda: _recording_client(responses, []), call))

    assert raw == "Looks like early bollworm damage..."


def test_empty_answer_is_terminal() -> None:
    responses = [httpx.Response(200, json={"candidates": []})]

    async def call(http):
        return await GeminiClient(_gemini_settings(), http).complete("identify", IMAGE)

    with pytest.raises(EmptyResponseError):
        asyncio.run(_run(lambda: _recording_client(responses, []), call))


def test_chat_completions_payload_with_image() -> None:
    seen: list = []
    responses = [httpx.Response(200, json={"choices": [{"message": {"content": "Aphids on the leaf"}}]})]
    settings = _chat_settings("deepseek-vision", DEEPSEEK_API_URL, "deepseek-vision")

    async def call(http):
        return await DeepSeekClient(settings, http).complete("what pest?", IMAGE, system="be brief")

    raw = asyncio.run(_run(lambda: _recording_client(responses, seen), call))

    assert raw == "Aphids on the leaf"
    request = seen[0]
    assert request.headers["authorization"] == f"Bearer {GOOD_KEY}"
    body = json.loads(request.content)
    assert body["model"] == "deepseek-vision"
    assert body["max_tokens"] == 1500
    assert body["messages"][0] == {"role": "system", "content": "be brief"}
    content = body["messages"][1]["content"]
    assert content[0] == {"type": "text", "text": "what pest?"}
    assert content[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")


def test_openrouter_sends_attribution_headers() -> None:
    seen: list = []
    responses = [httpx.Response(200, json={"choices": [{"message": {"content": "Use mulch."}}]})]
    settings = _chat_settings("openrouter-chat", OPENROUTER_API_URL, "nvidia/nemotron-4-340b-instruct")

    async def call(http):
        client = OpenRouterClient(settings, http, referer="https://krishimitra.example", title="KrishiMitra")
        return await client.complete("how to save water?")

    raw = asyncio.run(_run(lambda: _recording_client(responses, seen), call))

    assert raw == "Use mulch."
    assert seen[0].headers["http-referer"] == "https://krishimitra.example"
    assert seen[0].headers["x-title"] == "KrishiMitra"
    assert json.loads(seen[0].content)["messages"] == [{"role": "user", "content": "how to save water?"}]


def test_describe_never_exposes_keys() -> None:
    info = GeminiClient(_gemini_settings()).describe()

    assert info["configured"] is True
    assert GOOD_KEY not in json.dumps(info)
