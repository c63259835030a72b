"""Analytics aggregator: per-owner, per-day counters."""

from __future__ import annotations

from datetime import datetime, timezone

from supportdesk.gateway import PersistenceGateway
from supportdesk.models import Direction, Priority, Sentiment

SENTIMENT_COLUMNS = {
    Sentiment.POSITIVE: "positive_sentiment",
    Sentiment.NEGATIVE: "negative_sentiment",
    Sentiment.NEUTRAL: "neutral_sentiment",
}


def today() -> str:
    """Current UTC calendar date, YYYY-MM-DD."""
    return datetime.now(timezone.utc).date().isoformat()


def analytics_delta(
    direction: Direction,
    sentiment: Sentiment | str | None = None,
    priority: Priority | str | None = None,
) -> dict[str, int]:
    """Counter increments for one ingested or resolved email."""
    direction = Direction(direction)
    if direction is Direction.RESOLVED:
        return {"resolved_emails": 1, "pending_emails": -1}

    try:
        sentiment = Sentiment(sentiment)
    except ValueError:
        sentiment = Sentiment.NEUTRAL

    delta = {"total_emails": 1, "pending_emails": 1, SENTIMENT_COLUMNS[sentiment]: 1}
    if priority in (Priority.URGENT, Priority.URGENT.value):
        delta["urgent_emails"] = 1
    return delta


def update_analytics(
    gateway: PersistenceGateway,
    user_id: str,
    direction: Direction | str,
    sentiment: Sentiment | str | None = None,
    priority: Priority | str | None = None,
    day: str | None = None,
) -> dict:
    """Apply one email's delta to the owner's row for the day. Returns the updated row."""
    delta = analytics_delta(Direction(direction), sentiment, priority)
    return gateway.apply_analytics(user_id, day or today(), **delta)
