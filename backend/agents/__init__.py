# KrishiMitra Agents
"""
Agent module for the provider orchestration workflow.

Exports:
- Validator: flags empty and truncated provider answers
- RetryController: bounded retries with linear backoff

The planner and orchestrator import the provider clients, which in turn
import the validator; import them by full path
(`backend.agents.orchestrator`).
"""
from .validator import ELLIPSIS_MARKERS, ValidationOutcome, looks_truncated, validate
from .retry import RetryController

__all__ = [
    'ELLIPSIS_MARKERS',
    'ValidationOutcome',
    'looks_truncated',
    'validate',
    'RetryController',
]
