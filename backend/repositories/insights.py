"""Marketing insight accessors."""

from typing import List, Optional

from models.insight import MarketingInsight, MarketingInsightCreate
from models.types import CampaignID, InsightID
from shared.db import first_row, get_supabase_client

TABLE = "marketing_insights"


def get_marketing_insight(insight_id: InsightID) -> Optional[MarketingInsight]:
    supabase = get_supabase_client()
    response = supabase.table(TABLE).select("*").eq("id", insight_id).execute()

    row = first_row(response)
    return MarketingInsight(**row) if row else None


def get_marketing_insights_by_campaign(campaign_id: CampaignID) -> List[MarketingInsight]:
    supabase = get_supabase_client()
    response = (
        supabase.table(TABLE).select("*").eq("campaign_id", campaign_id).execute()
    )

    return [MarketingInsight(**row) for row in response.data or []]


def get_all_marketing_insights(limit: Optional[int] = None) -> List[MarketingInsight]:
    """Fetch insights, newest first."""
    supabase = get_supabase_client()
    query = supabase.table(TABLE).select("*").order("created_at", desc=True)
    if limit:
        query = query.limit(limit)

    response = query.execute()
    return [MarketingInsight(**row) for row in response.data or []]


def insert_marketing_insight(data: MarketingInsightCreate) -> MarketingInsight:
    """
    Persist a new insight.

    Raises:
        RuntimeError: If the insert returned no row
    """
    supabase = get_supabase_client()
    response = supabase.table(TABLE).insert(data.model_dump(mode="json")).execute()

    row = first_row(response)
    if row is None:
        raise RuntimeError(f"Insert of insight {data.insight_id} returned no row")
    return MarketingInsight(**row)


def delete_marketing_insight(insight_id: InsightID) -> bool:
    supabase = get_supabase_client()
    response = supabase.table(TABLE).delete().eq("id", insight_id).execute()

    return bool(response.data)
