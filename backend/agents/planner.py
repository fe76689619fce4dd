"""
Planner Agent
Decides which upstream providers may answer a task and in what order.
Implements the PLAN step of the orchestration workflow: the orchestrator
walks the returned list front to back and stops at the first success.
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import httpx

from backend.config import Settings
from backend.schemas import TASK_CHAT, TASK_KINDS, TASK_VISION
from backend.services.providers import DeepSeekClient, GeminiClient, OpenRouterClient, ProviderClient


@dataclass
class ProviderDescriptor:
    """One entry of the provider registry. Lower `priority` is tried first."""

    name: str
    priority: int
    endpoint: str
    auth_kind: str
    max_retries: int
    base_backoff_ms: int
    tasks: Tuple[str, ...] = TASK_KINDS
    client: Optional[ProviderClient] = field(default=None, repr=False)

    @classmethod
    def for_client(cls, client: ProviderClient, tasks: Iterable[str]) -> "ProviderDescriptor":
        s = client.settings
        return cls(
            name=client.name,
            priority=s.priority,
            endpoint=client.endpoint,
            auth_kind=client.auth_kind,
            max_retries=s.max_retries,
            base_backoff_ms=s.base_backoff_ms,
            tasks=tuple(tasks),
            client=client,
        )

    def serves(self, task_kind: str) -> bool:
        return task_kind in self.tasks


def plan_providers(task_kind: str, descriptors: Iterable[ProviderDescriptor]) -> List[ProviderDescriptor]:
    """
    Return the providers that serve `task_kind`, ordered by ascending priority.
    Ties keep registry order.
    """
    if task_kind not in TASK_KINDS:
        raise ValueError(f"unknown task kind: {task_kind!r}")
    return sorted((d for d in descriptors if d.serves(task_kind)), key=lambda d: d.priority)


def default_registry(settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> List[ProviderDescriptor]:
    """
    Build the production registry.

    vision: Gemini -> DeepSeek vision
    chat:   Gemini -> DeepSeek -> OpenRouter (Nemotron)

    Unconfigured providers stay in the registry; their client raises a
    configuration error before any network call and the chain moves on.
    """
    openrouter = OpenRouterClient(
        settings.openrouter_chat(),
        http_client,
        referer=settings.openrouter_referer,
        title=settings.app_title,
    )
    return [
        ProviderDescriptor.for_client(GeminiClient(settings.gemini_vision(), http_client), [TASK_VISION]),
        ProviderDescriptor.for_client(DeepSeekClient(settings.deepseek_vision(), http_client), [TASK_VISION]),
        ProviderDescriptor.for_client(GeminiClient(settings.gemini_chat(), http_client), [TASK_CHAT]),
        ProviderDescriptor.for_client(DeepSeekClient(settings.deepseek_chat(), http_client), [TASK_CHAT]),
        ProviderDescriptor.for_client(openrouter, [TASK_CHAT]),
    ]
