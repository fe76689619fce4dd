"""
Runtime configuration for the AI providers.

Values come from the process environment (a local `.env` is loaded by
`backend.main` through python-dotenv). `Settings.from_env()` is called once
at startup and the resulting object is handed to the orchestrator factory,
so provider clients never read the environment themselves.
"""
import os
from typing import List, Optional

from pydantic import BaseModel, Field

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEEPSEEK_API_URL = "https://api.deepseek.com/v1/chat/completions"
OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"

PLACEHOLDER_MARKERS = ("your_", "placeholder")


def is_valid_api_key(key: Optional[str]) -> bool:
    """Reject empty keys and the template values shipped in `.env.example` files."""
    if not key:
        return False
    lowered = key.lower()
    if any(marker in lowered for marker in PLACEHOLDER_MARKERS):
        return False
    return len(key) > 10


def split_api_keys(raw: str) -> List[str]:
    """Parse a comma/newline separated key list.

    Only the first whitespace-delimited token per entry is kept so trailing
    comments in `.env` files do not leak into requests.
    """
    keys: List[str] = []
    for chunk in (raw or "").replace(",", "\n").splitlines():
        token = chunk.strip()
        if not token:
            continue
        keys.append(token.split()[0].strip())
    return keys


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, "") or default)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, "") or default)
    except ValueError:
        return default


class ProviderSettings(BaseModel):
    """Static configuration of one upstream model endpoint."""

    name: str
    endpoint: str
    model: str
    api_keys: List[str] = Field(default_factory=list)
    priority: int = 1
    max_retries: int = 2
    base_backoff_ms: int = 1000
    timeout_s: float = 20.0
    max_tokens: int = 1500
    temperature: float = 0.7

    @property
    def api_key(self) -> str:
        return self.api_keys[0] if self.api_keys else ""

    @property
    def is_configured(self) -> bool:
        return any(is_valid_api_key(k) for k in self.api_keys)


class Settings(BaseModel):
    gemini_api_keys: List[str] = Field(default_factory=list)
    gemini_model: str = "gemini-2.5-flash"
    deepseek_api_key: str = ""
    deepseek_chat_model: str = "deepseek-chat"
    deepseek_vision_model: str = "deepseek-vision"
    openrouter_api_key: str = ""
    openrouter_model: str = "nvidia/nemotron-4-340b-instruct"
    openrouter_referer: str = "http://localhost:3000"
    app_title: str = "KrishiMitra"

    max_retries: int = 2
    backoff_ms: int = 1000
    provider_timeout_s: float = 20.0
    deadline_s: float = 30.0
    chat_max_tokens: int = 1500
    vision_max_tokens: int = 2048
    chat_temperature: float = 0.7
    vision_temperature: float = 0.4

    @classmethod
    def from_env(cls) -> "Settings":
        gemini_raw = os.getenv("GEMINI_API_KEYS", "") or os.getenv("GEMINI_API_KEY", "")
        return cls(
            gemini_api_keys=split_api_keys(gemini_raw),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            deepseek_api_key=os.getenv("DEEPSEEK_API_KEY", ""),
            deepseek_chat_model=os.getenv("DEEPSEEK_CHAT_MODEL", "deepseek-chat"),
            deepseek_vision_model=os.getenv("DEEPSEEK_VISION_MODEL", "deepseek-vision"),
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY", "") or os.getenv("NVIDIA_API_KEY", ""),
            openrouter_model=os.getenv("OPENROUTER_MODEL", "nvidia/nemotron-4-340b-instruct"),
            openrouter_referer=os.getenv("OPENROUTER_REFERER", "http://localhost:3000"),
            max_retries=_env_int("PROVIDER_MAX_RETRIES", 2),
            backoff_ms=_env_int("PROVIDER_BACKOFF_MS", 1000),
            provider_timeout_s=_env_float("PROVIDER_TIMEOUT_S", 20.0),
            deadline_s=_env_float("ORCHESTRATION_DEADLINE_S", 30.0),
            chat_max_tokens=_env_int("CHAT_MAX_TOKENS", 1500),
            vision_max_tokens=_env_int("VISION_MAX_TOKENS", 2048),
        )

    def _provider(self, name: str, endpoint: str, model: str, keys: List[str], priority: int,
                  max_tokens: int, temperature: float) -> ProviderSettings:
        return ProviderSettings(
            name=name,
            endpoint=endpoint,
            model=model,
            api_keys=[k for k in keys if k],
            priority=priority,
            max_retries=self.max_retries,
            base_backoff_ms=self.backoff_ms,
            timeout_s=self.provider_timeout_s,
            max_tokens=max_tokens,
            temperature=temperature,
        )

    def gemini_vision(self) -> ProviderSettings:
        return self._provider("gemini-vision", GEMINI_API_BASE, self.gemini_model, self.gemini_api_keys, 1,
                              self.vision_max_tokens, self.vision_temperature)

    def deepseek_vision(self) -> ProviderSettings:
        return self._provider("deepseek-vision", DEEPSEEK_API_URL, self.deepseek_vision_model,
                              [self.deepseek_api_key], 2, 1000, self.vision_temperature)

    def gemini_chat(self) -> ProviderSettings:
        return self._provider("gemini-chat", GEMINI_API_BASE, self.gemini_model, self.gemini_api_keys, 1,
                              self.chat_max_tokens, self.chat_temperature)

    def deepseek_chat(self) -> ProviderSettings:
        return self._provider("deepseek-chat", DEEPSEEK_API_URL, self.deepseek_chat_model,
                              [self.deepseek_api_key], 2, self.chat_max_tokens, self.chat_temperature)

    def openrouter_chat(self) -> ProviderSettings:
        return self._provider("openrouter-chat", OPENROUTER_API_URL, self.openrouter_model,
                              [self.openrouter_api_key], 3, self.chat_max_tokens, self.chat_temperature)
