"""Dataclasses and enums passed between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Priority(str, Enum):
    URGENT = "urgent"
    NORMAL = "normal"


class Direction(str, Enum):
    NEW = "new"            # ingestion
    RESOLVED = "resolved"  # delivery


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    DEGRADED = "degraded"


@dataclass
class Classification:
    sentiment: Sentiment = Sentiment.NEUTRAL
    priority: Priority = Priority.NORMAL
    category: str = "general"
    urgency_keywords: list[str] = field(default_factory=list)
    extracted_info: dict = field(default_factory=dict)


@dataclass
class ClassificationOutcome:
    """Either a genuine model classification or the fixed fallback."""

    status: OutcomeStatus
    classification: Classification
    reason: str | None = None

    @classmethod
    def succeeded(cls, classification: Classification) -> ClassificationOutcome:
        return cls(OutcomeStatus.SUCCEEDED, classification)

    @classmethod
    def degraded(cls, reason: str) -> ClassificationOutcome:
        return cls(OutcomeStatus.DEGRADED, Classification(), reason)

    @property
    def is_degraded(self) -> bool:
        return self.status is OutcomeStatus.DEGRADED

    def to_dict(self) -> dict:
        c = self.classification
        return {
            "status": self.status.value,
            "reason": self.reason,
            "sentiment": c.sentiment.value,
            "priority": c.priority.value,
            "category": c.category,
            "urgencyKeywords": list(c.urgency_keywords),
            "extractedInfo": dict(c.extracted_info),
        }


@dataclass
class InboundEmail:
    sender_email: str
    subject: str
    body: str
    user_id: str
    received_at: str | None = None  # ISO-8601
    message_id: str | None = None   # transport Message-ID header, when known


@dataclass
class ProcessResult:
    processed: bool
    reason: str | None = None
    email: dict | None = None
    response: dict | None = None
    outcome: ClassificationOutcome | None = None

    def to_dict(self) -> dict:
        if not self.processed:
            return {"processed": False, "reason": self.reason}
        return {
            "processed": True,
            "email": self.email,
            "response": self.response,
            "classification": self.outcome.to_dict() if self.outcome else None,
        }
