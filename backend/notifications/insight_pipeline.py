"""
Insight creation pipeline.

Persists a new insight, then matches it against enabled notification
preferences and fans out activities, push notifications and email
alerts. Notification failures are logged and never undo the insight.
"""

from typing import Dict, List, Optional

from models.insight import MarketingInsight, MarketingInsightCreate
from models.notification import NotificationPreference
from models.types import Broadcast, UserID
from notifications.email_sender import send_insight_alert
from notifications.error_logger import log_notification_error
from notifications.fan_out import notify_matches
from notifications.insight_matcher import rank_insight_matches
from repositories.activities import record_activity
from repositories.email_queue import queue_email_alerts
from repositories.insights import insert_marketing_insight
from repositories.preferences import get_all_enabled_preferences, get_user_profiles


def create_marketing_insight(
    data: MarketingInsightCreate, broadcast: Optional[Broadcast] = None
) -> MarketingInsight:
    """
    Store a generated insight and notify matching users.

    Raises:
        Exception: Only if the insert itself fails
    """
    insight = insert_marketing_insight(data)
    process_new_insight(insight, broadcast=broadcast)
    return insight


def process_new_insight(
    insight: MarketingInsight, broadcast: Optional[Broadcast] = None
) -> List[UserID]:
    """
    Match a persisted insight and perform all notification side effects.

    Returns:
        Matched user IDs (empty if matching itself failed)
    """
    try:
        preferences = get_all_enabled_preferences()

        # First record wins if a user somehow has several
        preferences_by_id: Dict[UserID, NotificationPreference] = {}
        for preference in preferences:
            preferences_by_id.setdefault(preference.user_id, preference)

        ranked = rank_insight_matches(insight, preferences_by_id.values())
    except Exception as e:
        error_file = log_notification_error(
            error_type="matching",
            error_message=str(e),
            context={"insight_id": insight.id, "category": insight.category},
        )
        print(f"  ⚠️  Error matching insight to preferences. Details logged to: {error_file}")
        return []

    matched_user_ids = [score.user_id for score in ranked]
    if not matched_user_ids:
        print(f'No users matched for insight "{insight.display_title}"')
        return []

    print(
        f'Marketing insight "{insight.display_title}" matches preferences for '
        f"{len(matched_user_ids)} users: {matched_user_ids}"
    )

    stats = notify_matches(
        insight,
        matched_user_ids,
        preferences_by_id,
        record_activity=record_activity,
        broadcast=broadcast,
        scores={score.user_id: score for score in ranked},
    )
    print(
        f"  Activities: {stats['activities']}, pushes: {stats['broadcasts']}, "
        f"failures: {stats['activity_failures'] + stats['broadcast_failures']}"
    )

    deliver_email_alerts(
        insight,
        matched_user_ids,
        preferences_by_id,
        scores={score.user_id: score.score for score in ranked},
    )
    return matched_user_ids


def deliver_email_alerts(
    insight: MarketingInsight,
    matched_user_ids: List[UserID],
    preferences_by_id: Dict[UserID, NotificationPreference],
    scores: Optional[Dict[UserID, int]] = None,
) -> Dict[str, int]:
    """
    Email matched users who opted in.

    Users with an 'immediate' frequency limit are emailed now; everyone
    else is queued for their digest.

    Returns:
        Counts: sent, failed, queued
    """
    stats = {"sent": 0, "failed": 0, "queued": 0}
    scores = scores or {}

    eligible = [
        user_id
        for user_id in matched_user_ids
        if user_id in preferences_by_id and preferences_by_id[user_id].email_notifications
    ]
    if not eligible:
        return stats

    immediate = [u for u in eligible if preferences_by_id[u].frequency_limit == "immediate"]
    deferred = [u for u in eligible if u not in immediate]

    if deferred:
        try:
            stats["queued"] = queue_email_alerts(insight.id, deferred)
        except Exception as e:
            error_file = log_notification_error(
                error_type="queuing",
                error_message=str(e),
                context={"insight_id": insight.id, "user_ids": deferred},
            )
            print(f"  ⚠️  Error queuing digest alerts. Details logged to: {error_file}")

    if not immediate:
        return stats

    try:
        profiles = get_user_profiles(immediate)
    except Exception as e:
        error_file = log_notification_error(
            error_type="email",
            error_message=str(e),
            context={"insight_id": insight.id, "user_ids": immediate},
        )
        print(f"  ⚠️  Error loading email addresses. Details logged to: {error_file}")
        return stats

    for user_id in immediate:
        profile = profiles.get(user_id)
        if profile is None:
            print(f"  ⚠️  No email address for user {user_id}, skipping")
            stats["failed"] += 1
            continue

        result = send_insight_alert(user_id, profile.email, insight, scores.get(user_id))
        if result["success"]:
            stats["sent"] += 1
            print(f"  ✓ Emailed insight {insight.id} to user {user_id}")
        else:
            stats["failed"] += 1
            error_file = log_notification_error(
                error_type="email",
                error_message=result.get("error", "Unknown error"),
                context={"insight_id": insight.id, "user_id": user_id},
            )
            print(f"  ✗ Failed to email user {user_id}. Details logged to: {error_file}")

    return stats
