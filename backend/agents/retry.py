"""Retry Controller for provider calls."""
import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional

from backend.errors import RetryableProviderError, RetryExhausted
from backend.schemas import (
    OUTCOME_CANCELLED,
    OUTCOME_RETRYABLE,
    OUTCOME_SUCCESS,
    OUTCOME_TERMINAL,
    ProviderAttempt,
)

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class RetryController:
    """Run one provider call with bounded retries.

    Before retry ``n`` (1-based) the controller waits ``base_backoff_ms * n``.
    Terminal errors (and anything unexpected) are re-raised on the spot;
    after ``max_retries`` retryable failures a `RetryExhausted` is raised.
    Every call attempt is appended to ``attempts`` and logged.
    """

    def __init__(self, sleep: Optional[Sleeper] = None):
        self._sleep = sleep or asyncio.sleep

    @staticmethod
    def backoff_seconds(base_backoff_ms: int, retry_number: int) -> float:
        return (base_backoff_ms * retry_number) / 1000.0

    async def call(self, provider, invoke: Callable[[], Awaitable[str]],
                   attempts: Optional[List[ProviderAttempt]] = None) -> str:
        """`provider` is a `ProviderDescriptor`; `invoke` performs one call."""
        trace = attempts if attempts is not None else []
        last_error: Optional[Exception] = None

        for retry_count in range(provider.max_retries + 1):
            if retry_count:
                delay = self.backoff_seconds(provider.base_backoff_ms, retry_count)
                logger.info("[retry] %s retry %d/%d in %.2fs", provider.name, retry_count, provider.max_retries, delay)
                await self._sleep(delay)

            attempt = ProviderAttempt(provider=provider.name, retry_count=retry_count)
            trace.append(attempt)
            t0 = time.perf_counter()
            try:
                raw = await invoke()
            except asyncio.CancelledError:
                # deadline expiry or shutdown
                self._finish(attempt, t0, OUTCOME_CANCELLED)
                raise
            except RetryableProviderError as e:
                self._finish(attempt, t0, OUTCOME_RETRYABLE, e)
                last_error = e
                continue
            except Exception as e:
                self._finish(attempt, t0, OUTCOME_TERMINAL, e)
                raise
            attempt.raw_response_text = raw
            self._finish(attempt, t0, OUTCOME_SUCCESS)
            return raw

        logger.warning("[retry] %s exhausted %d attempts: %s", provider.name, provider.max_retries + 1, last_error)
        raise RetryExhausted(provider.name, provider.max_retries + 1, last_error)

    @staticmethod
    def _finish(attempt: ProviderAttempt, t0: float, outcome: str, error: Optional[Exception] = None) -> None:
        attempt.outcome = outcome
        attempt.latency_ms = (time.perf_counter() - t0) * 1000
        if error is not None:
            attempt.error = str(error)
            attempt.raw_response_text = getattr(error, "raw_text", None)
        logger.info(
            "[attempt] provider=%s retry=%d outcome=%s latency_ms=%.0f%s",
            attempt.provider,
            attempt.retry_count,
            outcome,
            attempt.latency_ms,
            f" error={attempt.error}" if attempt.error else "",
        )
