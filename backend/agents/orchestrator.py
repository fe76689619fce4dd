"""
Fallback Orchestrator for KrishiMitra

Runs one analysis request through the planned provider chain: each
provider gets the Retry Controller's bounded retries, the first success is
normalized and returned, and when every provider has failed (or the
end-to-end deadline passes) the curated mock answer is served instead.
`resolve` never raises.
"""
import asyncio
import logging
import time
from typing import List, Optional, Union

import httpx

from backend.agents.planner import ProviderDescriptor, default_registry, plan_providers
from backend.agents.retry import RetryController
from backend.config import Settings
from backend.errors import ProviderError, RetryExhausted
from backend.schemas import (
    TASK_VISION,
    AnalysisRequest,
    ChatResult,
    ProviderAttempt,
    Resolution,
    StructuredResult,
)
from backend.services.knowledge import detect_pest
from backend.services.mock_responses import MockResponseGenerator
from backend.services.normalizer import normalize
from backend.services.prompts import chat_system_prompt, chat_user_prompt, vision_prompt

logger = logging.getLogger(__name__)

MOCK_PROVIDER = "mock"


class FallbackOrchestrator:
    def __init__(self, descriptors: List[ProviderDescriptor], retry: Optional[RetryController] = None,
                 mock: Optional[MockResponseGenerator] = None, deadline_s: Optional[float] = 30.0):
        self.descriptors = list(descriptors)
        self.retry = retry or RetryController()
        self.mock = mock or MockResponseGenerator()
        self.deadline_s = deadline_s

    async def resolve(self, request: AnalysisRequest) -> Union[StructuredResult, ChatResult]:
        resolution = await self.resolve_detailed(request)
        return resolution.result

    async def resolve_detailed(self, request: AnalysisRequest) -> Resolution:
        request_id = f"req_{int(time.time() * 1000)}"
        attempts: List[ProviderAttempt] = []
        logger.info("[orchestrator] %s task=%s language=%s", request_id, request.task_kind, request.language)
        try:
            if self.deadline_s:
                return await asyncio.wait_for(self._run_chain(request, attempts), timeout=self.deadline_s)
            return await self._run_chain(request, attempts)
        except asyncio.TimeoutError:
            logger.warning("[orchestrator] %s deadline of %.1fs reached after %d attempts; serving mock",
                           request_id, self.deadline_s, len(attempts))
        except Exception:
            logger.exception("[orchestrator] %s unexpected failure; serving mock", request_id)
        return self._fallback(request, attempts)

    async def _run_chain(self, request: AnalysisRequest, attempts: List[ProviderAttempt]) -> Resolution:
        if request.task_kind == TASK_VISION and request.image_payload is None:
            logger.warning("[orchestrator] vision request without an image; serving mock")
            return self._fallback(request, attempts)

        for descriptor in plan_providers(request.task_kind, self.descriptors):
            if descriptor.client is None:
                logger.warning("[orchestrator] %s has no client registered, skipping", descriptor.name)
                continue
            try:
                raw = await self.retry.call(descriptor, lambda d=descriptor: self._invoke(d, request), attempts)
            except RetryExhausted as e:
                logger.warning("[orchestrator] %s exhausted retries: %s", descriptor.name, e.last_error)
                continue
            except ProviderError as e:
                logger.warning("[orchestrator] %s failed: %s", descriptor.name, e)
                continue
            except Exception:
                logger.exception("[orchestrator] %s raised unexpectedly", descriptor.name)
                continue

            logger.info("[orchestrator] answered by %s after %d attempts", descriptor.name, len(attempts))
            return Resolution(
                result=normalize(raw, request.language, request.task_kind),
                provider=descriptor.name,
                raw_response=raw,
                attempts=attempts,
            )

        logger.warning("[orchestrator] all providers failed for task=%s; serving mock", request.task_kind)
        return self._fallback(request, attempts)

    async def _invoke(self, descriptor: ProviderDescriptor, request: AnalysisRequest) -> str:
        client = descriptor.client
        if request.task_kind == TASK_VISION:
            return await client.complete(vision_prompt(request.language), request.image_payload)
        return await client.complete(
            chat_user_prompt(request.text_query or "", request.language),
            system=chat_system_prompt(request.language),
        )

    def _fallback(self, request: AnalysisRequest, attempts: List[ProviderAttempt]) -> Resolution:
        if request.task_kind == TASK_VISION:
            result = self.mock.generate(request.language, hint=last_pest_hint(attempts))
        else:
            result = self.mock.generate_chat(request.language, request.text_query)
        return Resolution(result=result, provider=MOCK_PROVIDER, raw_response=None,
                          attempts=list(attempts), used_fallback=True)


def last_pest_hint(attempts: List[ProviderAttempt]) -> Optional[str]:
    """Pest named in the most recent non-empty raw text, if any."""
    for attempt in reversed(attempts):
        if attempt.raw_response_text and attempt.raw_response_text.strip():
            return detect_pest(attempt.raw_response_text)
    return None


def create_orchestrator(settings: Optional[Settings] = None,
                        http_client: Optional[httpx.AsyncClient] = None) -> FallbackOrchestrator:
    settings = settings or Settings.from_env()
    return FallbackOrchestrator(default_registry(settings, http_client), deadline_s=settings.deadline_s)
