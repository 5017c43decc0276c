"""Notification preference accessors."""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from models.notification import NotificationPreference, UserProfile
from models.types import UserID
from shared.db import first_row, get_supabase_client

TABLE = "notification_preferences"


def get_all_enabled_preferences() -> List[NotificationPreference]:
    """Fetch every preference record with notifications enabled."""
    supabase = get_supabase_client()
    response = supabase.table(TABLE).select("*").eq("enabled", True).execute()

    return [NotificationPreference(**row) for row in response.data or []]


def get_notification_preference(user_id: UserID) -> Optional[NotificationPreference]:
    """Fetch a user's preference record (first one if duplicates exist)."""
    supabase = get_supabase_client()
    response = (
        supabase.table(TABLE).select("*").eq("user_id", user_id).limit(1).execute()
    )

    row = first_row(response)
    return NotificationPreference(**row) if row else None


def create_notification_preference(data: Dict[str, Any]) -> NotificationPreference:
    """
    Insert a preference record.

    Raises:
        pydantic.ValidationError: If data is not a valid preference
    """
    preference = NotificationPreference(**data)
    payload = preference.model_dump(
        mode="json", exclude={"id", "created_at", "updated_at"}
    )

    supabase = get_supabase_client()
    response = supabase.table(TABLE).insert(payload).execute()

    row = first_row(response)
    return NotificationPreference(**row) if row else preference


def update_notification_preference(
    user_id: UserID, changes: Dict[str, Any]
) -> Optional[NotificationPreference]:
    """
    Apply a partial update to a user's preferences.

    Returns:
        Updated record, or None if the user has no preference record
    """
    existing = get_notification_preference(user_id)
    if existing is None:
        return None

    # Validate the merged record before writing
    merged = existing.model_copy(update=changes)
    NotificationPreference.model_validate(merged.model_dump())

    payload = {key: value for key, value in changes.items() if key not in ("id", "user_id")}
    payload["updated_at"] = "now()"

    supabase = get_supabase_client()
    response = supabase.table(TABLE).update(payload).eq("user_id", user_id).execute()

    row = first_row(response)
    return NotificationPreference(**row) if row else merged


def disable_notifications(user_id: UserID) -> bool:
    """Turn off all insight alerts for a user. Returns False if no record exists."""
    return update_notification_preference(user_id, {"enabled": False}) is not None


def get_user_profiles(user_ids: List[UserID]) -> Dict[UserID, UserProfile]:
    """Fetch email addresses for the given users, keyed by user ID."""
    if not user_ids:
        return {}

    supabase = get_supabase_client()
    response = (
        supabase.table("users").select("id, username, email").in_("id", user_ids).execute()
    )

    profiles = {}
    for row in response.data or []:
        if not row.get("email"):
            continue
        try:
            profile = UserProfile(**row)
        except ValidationError as e:
            print(f"  ⚠️  Skipping user {row.get('id')} with invalid email: {e.errors()[0]['msg']}")
            continue
        profiles[profile.id] = profile
    return profiles
