"""Pydantic models for the insight notification system."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from models.types import (
    BatchID,
    CampaignID,
    InsightID,
    KeywordList,
    PreferenceID,
    UserID,
)

FREQUENCY_LIMITS = ("immediate", "hourly", "daily", "weekly")


class NotificationPreference(BaseModel):
    """A user's subscription criteria for marketing insight alerts."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: PreferenceID | None = None
    user_id: UserID
    enabled: bool = True
    categories: list[str] = Field(default_factory=list)
    property_types: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    keyword_matches: KeywordList = Field(default_factory=list)
    # No lower bound: a threshold <= 0 is satisfied as soon as the filters pass
    relevance_threshold: int = 5
    email_notifications: bool = True
    app_notifications: bool = True
    frequency_limit: str = Field(
        "immediate", pattern="^(immediate|hourly|daily|weekly)$"
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None


class InsightScore(BaseModel):
    """Result of scoring one insight against one preference record."""

    user_id: UserID
    matched: bool
    score: int = 0
    breakdown: dict[str, int] = Field(default_factory=dict)
    gates_failed: list[str] = Field(default_factory=list)


class ActivityCreate(BaseModel):
    """Activity log entry written for every matched user."""

    user_id: UserID
    campaign_id: CampaignID
    action_type: str = "insight-notification"
    content: str = Field(..., min_length=1)


class InsightNotification(BaseModel):
    """Push payload delivered to the real-time transport."""

    id: str
    user_id: UserID
    title: str = "New Marketing Insight"
    message: str
    type: str = "insight"
    category: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    read: bool = False
    link: str
    data: dict[str, Any] = Field(default_factory=dict)


class InsightEmailQueueEntry(BaseModel):
    """Email alert queued for digest delivery."""

    id: int
    user_id: UserID
    insight_id: InsightID
    status: str = Field(..., pattern="^(pending|sent|failed)$")
    digest_batch_id: BatchID
    created_at: datetime
    sent_at: datetime | None = None
    error_message: str | None = None


class UserProfile(BaseModel):
    """Minimal user record needed to address alert emails."""

    id: UserID
    username: str | None = None
    email: str = Field(..., pattern=r"^[^@]+@[^@]+\.[^@]+$")
