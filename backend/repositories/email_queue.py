"""
Email alert queue accessors.

Users whose frequency limit is not 'immediate' get their insight alerts
queued here and delivered in one digest per batch.
"""

import os
from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from models.types import BatchID, InsightID, UserID
from notifications.error_logger import log_notification_error
from shared.db import get_supabase_client

TABLE = "insight_email_queue"


def current_batch_id() -> BatchID:
    """Today's digest batch ID in the configured digest timezone."""
    tz = ZoneInfo(os.getenv("DIGEST_TIMEZONE", "UTC"))
    return datetime.now(tz).date().isoformat()


def queue_email_alerts(
    insight_id: InsightID, user_ids: List[UserID], batch_id: Optional[BatchID] = None
) -> int:
    """
    Queue digest email alerts for one insight.

    Rows are inserted one at a time so a duplicate (unique on
    user_id, insight_id) only skips that user.

    Returns:
        Number of alerts queued
    """
    if not user_ids:
        return 0

    batch_id = batch_id or current_batch_id()
    supabase = get_supabase_client()

    queued_count = 0
    failures = []
    for user_id in user_ids:
        entry = {
            "user_id": user_id,
            "insight_id": insight_id,
            "status": "pending",
            "digest_batch_id": batch_id,
        }
        try:
            supabase.table(TABLE).insert(entry, returning="minimal").execute()
            queued_count += 1
        except Exception as e:
            error_str = str(e)
            if "duplicate" not in error_str.lower() and "unique" not in error_str.lower():
                failures.append({"entry": entry, "error": error_str})
            print(f"  ⚠ Could not queue email alert for user {user_id}: {e}")

    if failures:
        log_notification_error(
            error_type="queuing",
            error_message=f"Failed to queue {len(failures)} email alert(s)",
            context={"insight_id": insight_id, "failures": failures},
        )

    return queued_count


def get_pending_email_alerts_by_user(
    batch_id: Optional[BatchID] = None,
) -> Dict[UserID, List[Dict[str, Any]]]:
    """
    Get pending alerts grouped by user, each joined with its insight.

    Args:
        batch_id: Only this batch (YYYY-MM-DD); all pending alerts if None
    """
    supabase = get_supabase_client()

    query = (
        supabase.table(TABLE)
        .select(
            "*, insight:marketing_insights(id, insight_id, title, category, property_type, location, summary, keywords, relevance, campaign_id, created_by, created_at)"
        )
        .eq("status", "pending")
        .order("created_at", desc=False)
    )
    if batch_id:
        query = query.eq("digest_batch_id", batch_id)

    response = query.execute()

    alerts_by_user: Dict[UserID, List[Dict[str, Any]]] = {}
    for alert in response.data or []:
        alerts_by_user.setdefault(alert["user_id"], []).append(alert)

    return alerts_by_user


def mark_alerts(alert_ids: List[int], status: str, error_message: Optional[str] = None) -> None:
    """Set the delivery status of queued alerts."""
    changes: Dict[str, Any] = {"status": status}
    if status == "sent":
        changes["sent_at"] = "now()"
    if error_message:
        changes["error_message"] = error_message

    supabase = get_supabase_client()
    supabase.table(TABLE).update(changes).in_("id", alert_ids).execute()
