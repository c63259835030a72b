"""Tests for the classification stage (mocked provider)."""

from unittest.mock import MagicMock

import httpx
import pytest

from tests.conftest import URGENT_CLASSIFICATION, make_provider
from supportdesk.ai.base import ModelOutputError
from supportdesk.models import OutcomeStatus, Priority, Sentiment
from supportdesk.stages.classify import classify_email, has_support_keyword


@pytest.mark.parametrize("subject,body", [
    ("Urgent Support Request", ""),
    ("", "I have a QUERY about billing"),
    ("Re: my request", "thanks"),
    ("Hi", "Can you HELP?"),
    ("helpdesk", ""),
])
def test_support_keyword_matches(subject, body):
    assert has_support_keyword(subject, body)


def test_support_keyword_absent():
    assert not has_support_keyword("Lunch on Friday?", "Let's meet at noon.")
    assert not has_support_keyword(None, None)


def test_urgent_scenario():
    """Account-access email is classified urgent with its trigger words."""
    provider = make_provider()

    outcome = classify_email(
        provider, "test-model", "Urgent Support Request", "I cannot access my account immediately"
    )

    assert outcome.status is OutcomeStatus.SUCCEEDED
    c = outcome.classification
    assert c.priority is Priority.URGENT
    assert c.sentiment is Sentiment.NEGATIVE
    assert {"immediately", "cannot access"} & set(c.urgency_keywords)
    assert c.extracted_info == URGENT_CLASSIFICATION["extractedInfo"]


def test_classification_call_parameters():
    provider = make_provider()
    classify_email(provider, "test-model", "Help", "body text", temperature=0.3, max_tokens=800)

    kwargs = provider.complete.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["response_format"] == "json"
    assert kwargs["temperature"] == 0.3
    assert kwargs["max_tokens"] == 800
    assert "Help" in kwargs["prompt"]
    assert "body text" in kwargs["prompt"]


def test_body_is_truncated_in_prompt():
    provider = make_provider()
    classify_email(provider, "m", "Help", "x" * 50 + "TAIL", max_body_chars=50)
    assert "TAIL" not in provider.complete.call_args.kwargs["prompt"]


@pytest.mark.parametrize("error", [
    httpx.ConnectError("connection refused"),
    ConnectionError("Failed to connect"),
    ModelOutputError("Model reply is not valid JSON"),
    RuntimeError("rate limited"),
])
def test_failure_degrades_to_defaults(error):
    provider = MagicMock()
    provider.complete.side_effect = error

    outcome = classify_email(provider, "m", "Help", "Please help")

    assert outcome.is_degraded
    assert type(error).__name__ in outcome.reason
    assert outcome.to_dict() == {
        "status": "degraded",
        "reason": outcome.reason,
        "sentiment": "neutral",
        "priority": "normal",
        "category": "general",
        "urgencyKeywords": [],
        "extractedInfo": {},
    }


def test_bad_field_values_fall_back_per_field():
    provider = make_provider({
        "sentiment": "furious",
        "priority": "URGENT",
        "category": "",
        "urgency_keywords": "asap",
        "extractedInfo": ["not", "a", "dict"],
    })

    outcome = classify_email(provider, "m", "Help", "asap")

    assert outcome.status is OutcomeStatus.SUCCEEDED
    c = outcome.classification
    assert c.sentiment is Sentiment.NEUTRAL
    assert c.priority is Priority.URGENT
    assert c.category == "general"
    assert c.urgency_keywords == ["asap"]
    assert c.extracted_info == {}
