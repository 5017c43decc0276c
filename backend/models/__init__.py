"""Pydantic models for data validation and type checking."""

from models.insight import MarketingInsight, MarketingInsightCreate
from models.notification import (
    FREQUENCY_LIMITS,
    ActivityCreate,
    InsightEmailQueueEntry,
    InsightNotification,
    InsightScore,
    NotificationPreference,
    UserProfile,
)

__all__ = [
    "MarketingInsight",
    "MarketingInsightCreate",
    "NotificationPreference",
    "InsightScore",
    "ActivityCreate",
    "InsightNotification",
    "InsightEmailQueueEntry",
    "UserProfile",
    "FREQUENCY_LIMITS",
]
