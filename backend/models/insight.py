"""Pydantic models for AI-generated marketing insights."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.types import CampaignID, InsightID, KeywordList, UserID


class MarketingInsightCreate(BaseModel):
    """Insight data produced by the generation workflow, before ID assignment."""

    model_config = ConfigDict(str_strip_whitespace=True)

    insight_id: str = Field(..., min_length=1)
    title: str | None = None
    category: str | None = None
    property_type: str | None = None
    location: str | None = None
    target_market: str | None = None
    price_range: str | None = None
    summary: str = ""
    insights: list[dict[str, Any]] = Field(default_factory=list)
    keywords: KeywordList = Field(default_factory=list)
    relevance: int | None = Field(None, ge=1, le=10)
    campaign_id: CampaignID | None = None
    created_by: UserID

    @field_validator("keywords", mode="before")
    @classmethod
    def _null_keywords(cls, value: Any) -> Any:
        # jsonb column is nullable
        return [] if value is None else value

    @field_validator("summary", mode="before")
    @classmethod
    def _null_summary(cls, value: Any) -> Any:
        return "" if value is None else value


class MarketingInsight(MarketingInsightCreate):
    """Complete insight record from database."""

    id: InsightID
    created_at: datetime | None = None

    @property
    def display_title(self) -> str:
        """Human-readable name used in notifications."""
        return self.title or self.insight_id
