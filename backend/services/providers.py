"""
Provider Clients
Thin async wrappers around the hosted models KrishiMitra talks to:
Google Gemini (`generateContent`) and the OpenAI-compatible chat-completions
APIs of DeepSeek and OpenRouter.

Every client exposes the same `request(prompt, media=None, ...) -> str`
method and owns its own request/response shaping, so the orchestrator never
needs to know which vendor it is talking to. HTTP failures are mapped onto
two exception families: `RetryableProviderError` (network blips, 5xx) and
`TerminalProviderError` (auth, not-found, bad request, quota).
"""
import base64
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from backend.agents.validator import validate
from backend.config import ProviderSettings, is_valid_api_key
from backend.errors import (
    EmptyResponseError,
    ProviderConfigurationError,
    ProviderError,
    RetryableProviderError,
    TerminalProviderError,
)
from backend.schemas import ImagePayload

logger = logging.getLogger(__name__)

TERMINAL_STATUS_CODES = {400, 401, 403, 404, 429}
QUOTA_PATTERN = re.compile(r"quota|resource.?exhausted|exceeded your", re.IGNORECASE)
UNAVAILABLE_PATTERN = re.compile(r"temporarily unavailable|overloaded|try again later", re.IGNORECASE)


def classify_http_error(provider: str, status_code: int, body: str) -> ProviderError:
    """Map a non-2xx response onto the retryable/terminal split.

    429 and any quota message are terminal: a daily quota will not reset
    within a backoff window.
    """
    snippet = (body or "")[:300]
    message = f"{provider} returned HTTP {status_code}: {snippet}"
    if status_code in TERMINAL_STATUS_CODES or QUOTA_PATTERN.search(snippet):
        return TerminalProviderError(message, provider=provider, status_code=status_code, raw_text=body)
    if status_code >= 500 or UNAVAILABLE_PATTERN.search(snippet):
        return RetryableProviderError(message, provider=provider, status_code=status_code, raw_text=body)
    return TerminalProviderError(message, provider=provider, status_code=status_code, raw_text=body)


def image_data_url(media: ImagePayload) -> str:
    encoded = base64.b64encode(media.data).decode("ascii")
    return f"data:{media.mime_type};base64,{encoded}"


class ProviderClient:
    """Base class: configuration checks, HTTP plumbing and truncation re-issue."""

    auth_kind = "none"

    def __init__(self, settings: ProviderSettings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.name = settings.name
        self._http = http_client

    @property
    def endpoint(self) -> str:
        return self.settings.endpoint

    def usable_keys(self) -> List[str]:
        return [k for k in self.settings.api_keys if is_valid_api_key(k)]

    def ensure_configured(self) -> None:
        if not self.usable_keys():
            raise ProviderConfigurationError(f"{self.name} API key not configured", provider=self.name)

    async def request(self, prompt: str, media: Optional[ImagePayload] = None, *, system: Optional[str] = None,
                      max_tokens: Optional[int] = None) -> str:
        """Send one prompt (optionally with an image) and return the raw model text."""
        self.ensure_configured()
        return await self._send(prompt, media, system, max_tokens or self.settings.max_tokens)

    async def complete(self, prompt: str, media: Optional[ImagePayload] = None, *,
                       system: Optional[str] = None) -> str:
        """`request` plus response validation.

        A suspected truncation triggers exactly one re-issue with double the
        output budget. An empty answer is terminal for this provider.
        """
        raw = await self.request(prompt, media, system=system)
        outcome = validate(raw)
        if not outcome.ok:
            raise EmptyResponseError(f"{self.name} returned an empty response", provider=self.name, raw_text=raw)
        if outcome.suspected_truncation:
            budget = self.settings.max_tokens * 2
            logger.warning("[%s] response looks truncated, re-issuing with max_tokens=%d", self.name, budget)
            try:
                extended = await self.request(prompt, media, system=system, max_tokens=budget)
            except ProviderError as e:
                logger.warning("[%s] extended re-issue failed, keeping first answer: %s", self.name, e)
                extended = ""
            if extended and extended.strip():
                raw = extended
        return raw.strip()

    async def _send(self, prompt: str, media: Optional[ImagePayload], system: Optional[str],
                    max_tokens: int) -> str:
        raise NotImplementedError

    async def _post(self, url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> Dict[str, Any]:
        if self._http is not None:
            return await self._post_with(self._http, url, payload, headers)
        async with httpx.AsyncClient(timeout=self.settings.timeout_s) as client:
            return await self._post_with(client, url, payload, headers)

    async def _post_with(self, client: httpx.AsyncClient, url: str, payload: Dict[str, Any],
                         headers: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = await client.post(url, json=payload, headers=headers, timeout=self.settings.timeout_s)
        except httpx.TimeoutException as e:
            raise RetryableProviderError(f"{self.name} timed out: {e}", provider=self.name) from e
        except httpx.TransportError as e:
            raise RetryableProviderError(f"{self.name} network error: {e}", provider=self.name) from e

        logger.debug("[%s] response status: %s", self.name, response.status_code)
        if response.status_code >= 400:
            raise classify_http_error(self.name, response.status_code, response.text)
        try:
            return response.json()
        except ValueError as e:
            raise RetryableProviderError(
                f"{self.name} returned a non-JSON body", provider=self.name,
                status_code=response.status_code, raw_text=response.text,
            ) from e

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "model": self.settings.model,
            "configured": bool(self.usable_keys()),
            "authKind": self.auth_kind,
        }


class GeminiClient(ProviderClient):
    """Google Gemini REST client.

    Supports several API keys (GEMINI_API_KEYS); when one key hits its quota
    the next key is tried within the same request.
    """

    auth_kind = "api-key-header"

    @property
    def endpoint(self) -> str:
        model = self.settings.model
        if model.startswith("models/"):
            model = model[len("models/"):]
        return f"{self.settings.endpoint}/models/{model}:generateContent"

    def build_payload(self, prompt: str, media: Optional[ImagePayload], system: Optional[str],
                      max_tokens: int) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = [{"text": prompt}]
        if media is not None:
            parts.append({
                "inline_data": {
                    "mime_type": media.mime_type,
                    "data": base64.b64encode(media.data).decode("ascii"),
                }
            })
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "temperature": self.settings.temperature,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": max_tokens,
            },
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        return payload

    @staticmethod
    def extract_text(response: Dict[str, Any]) -> str:
        candidates = response.get("candidates") or []
        if not candidates:
            block = (response.get("promptFeedback") or {}).get("blockReason")
            if block:
                logger.warning("[Gemini] prompt blocked: %s", block)
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict))

    async def _send(self, prompt: str, media: Optional[ImagePayload], system: Optional[str],
                    max_tokens: int) -> str:
        payload = self.build_payload(prompt, media, system, max_tokens)
        keys = self.usable_keys()
        last_error: Optional[ProviderError] = None
        for idx, api_key in enumerate(keys):
            headers = {"Content-Type": "application/json", "x-goog-api-key": api_key}
            try:
                data = await self._post(self.endpoint, payload, headers)
                return self.extract_text(data)
            except TerminalProviderError as e:
                last_error = e
                if e.status_code == 429 and idx + 1 < len(keys):
                    logger.warning("[Gemini] key #%d hit quota (429); trying next key", idx + 1)
                    continue
                raise
        if last_error:
            raise last_error
        raise ProviderConfigurationError(f"{self.name} has no usable API keys", provider=self.name)


class ChatCompletionsClient(ProviderClient):
    """OpenAI-compatible `chat/completions` client with bearer auth."""

    auth_kind = "bearer"
    extra_headers: Dict[str, str] = {}

    def build_payload(self, prompt: str, media: Optional[ImagePayload], system: Optional[str],
                      max_tokens: int) -> Dict[str, Any]:
        messages: List[Dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        if media is not None:
            messages.append({
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": image_data_url(media)}},
                ],
            })
        else:
            messages.append({"role": "user", "content": prompt})
        return {
            "model": self.settings.model,
            "messages": messages,
            "temperature": self.settings.temperature,
            "max_tokens": max_tokens,
        }

    @staticmethod
    def extract_text(response: Dict[str, Any]) -> str:
        choices = response.get("choices") or []
        if not choices:
            return ""
        content = (choices[0].get("message") or {}).get("content") or ""
        if isinstance(content, list):
            # some gateways return content parts instead of a plain string
            content = "".join(p.get("text", "") for p in content if isinstance(p, dict))
        return str(content)

    async def _send(self, prompt: str, media: Optional[ImagePayload], system: Optional[str],
                    max_tokens: int) -> str:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.usable_keys()[0]}",
        }
        headers.update(self.extra_headers)
        data = await self._post(self.endpoint, self.build_payload(prompt, media, system, max_tokens), headers)
        return self.extract_text(data)


class DeepSeekClient(ChatCompletionsClient):
    pass


class OpenRouterClient(ChatCompletionsClient):
    def __init__(self, settings: ProviderSettings, http_client: Optional[httpx.AsyncClient] = None,
                 referer: str = "http://localhost:3000", title: str = "KrishiMitra"):
        super().__init__(settings, http_client)
        # OpenRouter uses these for app attribution on its dashboard
        self.extra_headers = {"HTTP-Referer": referer, "X-Title": title, "Accept": "application/json"}
