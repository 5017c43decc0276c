"""
Notification fan-out for matched insights.

For every user matched to an insight, writes an activity record and, when
the user has app notifications enabled, pushes a notification payload
through an injected broadcast callable. Each recipient is handled
independently: a failure for one user is logged and the loop moves on.
"""

import os
from typing import Any, Callable, Dict, List, Mapping, Optional

from models.insight import MarketingInsight
from models.notification import (
    ActivityCreate,
    InsightNotification,
    InsightScore,
    NotificationPreference,
)
from models.types import Broadcast, CampaignID, UserID
from notifications.error_logger import log_notification_error

ACTION_TYPE = "insight-notification"
DEFAULT_INSIGHT_RELEVANCE = 5


def noop_broadcast(notification: Dict[str, Any]) -> None:
    """Broadcast used when no real-time transport is attached."""


def _fallback_campaign_id() -> CampaignID:
    raw = os.getenv("DEFAULT_CAMPAIGN_ID", "1")
    try:
        return CampaignID(int(raw))
    except ValueError:
        print(f"  ⚠️  Invalid DEFAULT_CAMPAIGN_ID {raw!r}, using 1")
        return CampaignID(1)


def build_activity(insight: MarketingInsight, user_id: UserID) -> ActivityCreate:
    """Activity entry announcing the insight to one user."""
    return ActivityCreate(
        user_id=user_id,
        campaign_id=insight.campaign_id or _fallback_campaign_id(),
        action_type=ACTION_TYPE,
        content=(
            f'New marketing insight: "{insight.display_title}" '
            "matches your notification preferences"
        ),
    )


def build_notification(
    insight: MarketingInsight, user_id: UserID, score: Optional[int] = None
) -> InsightNotification:
    """
    Build the push payload for one user.

    The id is derived from insight and user so repeated deliveries of the
    same match can be recognised by the client.
    """
    return InsightNotification(
        id=f"insight-{insight.id}-{user_id}",
        user_id=user_id,
        message=f'"{insight.display_title}" matches your notification preferences',
        category=insight.category,
        link=f"/marketing-insights/{insight.id}",
        data={
            "insight_id": insight.id,
            "relevance": insight.relevance or DEFAULT_INSIGHT_RELEVANCE,
            "score": score,
        },
    )


def notify_matches(
    insight: MarketingInsight,
    matched_user_ids: List[UserID],
    preferences_by_id: Mapping[UserID, NotificationPreference],
    record_activity: Callable[[ActivityCreate], Any],
    broadcast: Optional[Broadcast] = None,
    scores: Optional[Mapping[UserID, InsightScore]] = None,
) -> Dict[str, int]:
    """
    Perform the per-user side effects for a matched insight.

    Args:
        insight: The persisted insight
        matched_user_ids: Output of match_insight_to_preferences()
        preferences_by_id: Preference records keyed by user ID
        record_activity: Activity sink (persists one ActivityCreate)
        broadcast: Real-time push sink; defaults to a no-op
        scores: Optional scores keyed by user ID, included in push payloads

    Returns:
        Aggregate counts: activities, activity_failures, broadcasts,
        broadcast_failures, email_eligible
    """
    send = broadcast or noop_broadcast
    scores = scores or {}
    stats = {
        "activities": 0,
        "activity_failures": 0,
        "broadcasts": 0,
        "broadcast_failures": 0,
        "email_eligible": 0,
    }

    for user_id in matched_user_ids:
        preference = preferences_by_id.get(user_id)

        try:
            record_activity(build_activity(insight, user_id))
            stats["activities"] += 1
        except Exception as e:
            stats["activity_failures"] += 1
            error_file = log_notification_error(
                error_type="activity",
                error_message=str(e),
                context={"insight_id": insight.id, "user_id": user_id},
            )
            print(
                f"  ⚠️  Could not record activity for user {user_id}. "
                f"Details logged to: {error_file}"
            )

        if preference is None:
            continue

        if preference.email_notifications:
            stats["email_eligible"] += 1

        if not preference.app_notifications:
            continue

        score = scores[user_id].score if user_id in scores else None
        try:
            payload = build_notification(insight, user_id, score)
            send(payload.model_dump(mode="json"))
            stats["broadcasts"] += 1
            print(f"  ✓ Push notification sent to user {user_id} for insight {insight.id}")
        except Exception as e:
            stats["broadcast_failures"] += 1
            error_file = log_notification_error(
                error_type="broadcast",
                error_message=str(e),
                context={"insight_id": insight.id, "user_id": user_id},
            )
            print(
                f"  ⚠️  Push notification failed for user {user_id}. "
                f"Details logged to: {error_file}"
            )

    return stats
