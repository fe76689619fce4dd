"""Exception hierarchy for upstream AI provider failures."""
from typing import Optional


class ProviderError(Exception):
    def __init__(self, message: str, provider: Optional[str] = None, status_code: Optional[int] = None,
                 raw_text: Optional[str] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.raw_text = raw_text


class RetryableProviderError(ProviderError):
    """Failure that may go away if the same request is sent again."""


class TerminalProviderError(ProviderError):
    """Failure that retrying will not fix (auth, missing model, quota)."""


class ProviderConfigurationError(TerminalProviderError):
    """API key missing or still set to a template value."""


class EmptyResponseError(TerminalProviderError):
    pass


class RetryExhausted(ProviderError):
    """Raised once a provider has used up its retry budget on transient errors."""

    def __init__(self, provider: str, attempts: int, last_error: Optional[Exception] = None):
        super().__init__(
            f"{provider} failed after {attempts} attempts: {last_error}",
            provider=provider,
            status_code=getattr(last_error, "status_code", None),
            raw_text=getattr(last_error, "raw_text", None),
        )
        self.attempts = attempts
        self.last_error = last_error
