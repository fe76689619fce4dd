"""
Domain models shared by the orchestration pipeline.

`StructuredResult` is the canonical pest-identification schema that every
provider output (and the mock fallback) is normalized into. Field names are
camelCase because they travel to the UI unchanged.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

TASK_VISION = "vision"
TASK_CHAT = "chat"
TASK_KINDS = (TASK_VISION, TASK_CHAT)

SEVERITIES = ("low", "medium", "high")

OUTCOME_SUCCESS = "success"
OUTCOME_RETRYABLE = "retryable-error"
OUTCOME_TERMINAL = "terminal-error"
OUTCOME_PENDING = "pending"
OUTCOME_CANCELLED = "cancelled"


class StructuredResult(BaseModel):
    pestName: str = "Unknown Pest"
    confidence: int = 70
    severity: str = "medium"
    description: str = ""
    symptoms: List[str] = Field(default_factory=list)
    treatment: List[str] = Field(default_factory=list)
    prevention: List[str] = Field(default_factory=list)
    organicTreatment: List[str] = Field(default_factory=list)
    chemicalTreatment: List[str] = Field(default_factory=list)
    cropsDamaged: List[str] = Field(default_factory=list)
    seasonality: str = ""


class ChatResult(BaseModel):
    content: str = ""


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    mime_type: str = "image/jpeg"


@dataclass(frozen=True)
class AnalysisRequest:
    """One incoming request; created at ingress and dropped after the response."""

    task_kind: str
    language: str = "en"
    image_payload: Optional[ImagePayload] = None
    text_query: Optional[str] = None


@dataclass
class ProviderAttempt:
    provider: str
    retry_count: int
    started_at: float = field(default_factory=time.time)
    outcome: str = OUTCOME_PENDING
    raw_response_text: Optional[str] = None
    latency_ms: float = 0.0
    error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "retry_count": self.retry_count,
            "started_at": self.started_at,
            "outcome": self.outcome,
            "latency_ms": round(self.latency_ms, 1),
            "error": self.error,
        }


@dataclass
class Resolution:
    result: Union[StructuredResult, ChatResult]
    provider: str
    raw_response: Optional[str] = None
    attempts: List[ProviderAttempt] = field(default_factory=list)
    used_fallback: bool = False
