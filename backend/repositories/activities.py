"""Activity log accessor."""

from typing import Any, Dict

from models.notification import ActivityCreate
from shared.db import get_supabase_client


def record_activity(activity: ActivityCreate) -> Dict[str, Any]:
    """Append an activity record. Errors propagate to the caller."""
    supabase = get_supabase_client()
    response = supabase.table("activities").insert(activity.model_dump()).execute()

    return response.data[0] if response.data else {}
