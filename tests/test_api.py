from __future__ import annotations

import asyncio
import base64
import struct
import zlib
from io import BytesIO

import httpx
from PIL import Image

from backend.agents.orchestrator import FallbackOrchestrator
from backend.agents.planner import default_registry
from backend.config import Settings
from backend.main import app, get_orchestrator
from backend.schemas import TASK_CHAT, TASK_VISION, ChatResult, Resolution, StructuredResult


class FakeOrchestrator:
    def __init__(self, resolution: Resolution):
        self.resolution = resolution
        self.requests = []

    async def resolve_detailed(self, request):
        self.requests.append(request)
        return self.resolution


def _png_data_url() -> str:
    out = BytesIO()
    Image.new("RGB", (32, 32), color=(10, 200, 30)).save(out, format="PNG")
    return "data:image/png;base64," + base64.b64encode(out.getvalue()).decode("ascii")


async def _request(method: str, path: str, orchestrator=None, **kwargs) -> httpx.Response:
    if orchestrator is not None:
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            return await client.request(method, path, **kwargs)
    finally:
        app.dependency_overrides.clear()


def test_healthz() -> None:
    response = asyncio.run(_request("GET", "/healthz"))

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_analyze_image_returns_provider_result() -> None:
    result = StructuredResult(pestName="Aphids", confidence=82, severity="high")
    fake = FakeOrchestrator(Resolution(result=result, provider="gemini-vision", raw_response='{"pestName":"Aphids"}'))

    response = asyncio.run(
        _request("POST", "/analyze-image", fake, json={"imageData": _png_data_url(), "language": "HI"})
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["result"]["pestName"] == "Aphids"
    assert body["result"]["symptoms"] == []
    assert body["rawResponse"] == '{"pestName":"Aphids"}'
    request = fake.requests[0]
    assert request.task_kind == TASK_VISION
    assert request.language == "hi"
    assert request.image_payload.mime_type == "image/png"


def test_analyze_image_mock_answer_has_no_raw_response() -> None:
    fake = FakeOrchestrator(Resolution(result=StructuredResult(pestName="Bollworm", confidence=85),
                                       provider="mock", used_fallback=True))

    response = asyncio.run(_request("POST", "/analyze-image", fake, json={"imageData": _png_data_url()}))

    assert response.status_code == 200
    assert response.json()["rawResponse"] is None
    assert response.json()["provider"] == "mock"


def test_analyze_image_rejects_missing_or_broken_image() -> None:
    fake = FakeOrchestrator(Resolution(result=StructuredResult(), provider="mock"))

    missing = asyncio.run(_request("POST", "/analyze-image", fake, json={"language": "en"}))
    broken = asyncio.run(_request("POST", "/analyze-image", fake, json={"imageData": "%%%not-base64%%%"}))

    assert missing.status_code == 400
    assert broken.status_code == 400
    assert fake.requests == []


def test_agricultural_chat() -> None:
    fake = FakeOrchestrator(Resolution(result=ChatResult(content="Irrigate at dawn."), provider="deepseek-chat"))

    response = asyncio.run(
        _request("POST", "/agricultural-chat", fake, json={"query": "  when to irrigate?  ", "language": "en"})
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "response": "Irrigate at dawn.", "provider": "deepseek-chat"}
    assert fake.requests[0].task_kind == TASK_CHAT
    assert fake.requests[0].text_query == "when to irrigate?"


def test_agricultural_chat_rejects_empty_query() -> None:
    fake = FakeOrchestrator(Resolution(result=ChatResult(content="x"), provider="mock"))

    response = asyncio.run(_request("POST", "/agricultural-chat", fake, json={"query": "   "}))

    assert response.status_code == 400
    assert fake.requests == []


def test_health_reports_configuration_without_keys() -> None:
    key = "gemini-secret-key-0123456789"
    orchestrator = FallbackOrchestrator(default_registry(Settings(gemini_api_keys=[key])))

    response = asyncio.run(_request("GET", "/health", orchestrator))

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    chat = body["providers"]["chat"]
    assert [p["name"] for p in chat] == ["gemini-chat", "deepseek-chat", "openrouter-chat"]
    assert [p["configured"] for p in chat] == [True, False, False]
    assert key not in response.text


def test_health_is_degraded_without_any_key() -> None:
    orchestrator = FallbackOrchestrator(default_registry(Settings()))

    response = asyncio.run(_request("GET", "/health", orchestrator))

    assert response.json()["status"] == "degraded"


def test_analyze_image_rejects_decompression_bomb() -> None:
    def chunk(kind: bytes, body: bytes) -> bytes:
        return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", zlib.crc32(kind + body) & 0xFFFFFFFF)

    png = b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", struct.pack(">IIBBBBB", 20000, 20000, 8, 2, 0, 0, 0)) + chunk(b"IEND", b"")
    fake = FakeOrchestrator(Resolution(result=StructuredResult(), provider="mock"))

    response = asyncio.run(
        _request("POST", "/analyze-image", fake, json={"imageData": base64.b64encode(png).decode("ascii")})
    )

    assert response.status_code == 400
    assert fake.requests == []


def test_image_preflight_runs_in_worker_thread(monkeypatch) -> None:
    import backend.main as main_module

    offloaded = []
    real_to_thread = asyncio.to_thread

    async def recording_to_thread(fn, *args, **kwargs):
        offloaded.append(fn)
        return await real_to_thread(fn, *args, **kwargs)

    monkeypatch.setattr(main_module.asyncio, "to_thread", recording_to_thread)
    fake = FakeOrchestrator(Resolution(result=StructuredResult(), provider="mock"))

    response = asyncio.run(_request("POST", "/analyze-image", fake, json={"imageData": _png_data_url()}))

    assert response.status_code == 200
    assert offloaded == [main_module.prepare_image]
