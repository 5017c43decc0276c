"""
CLI script for sending queued insight alert digests.

Usage:
    # Send digests for yesterday's batch (in DIGEST_TIMEZONE, default UTC)
    python -m notifications.process_notification_queue --daily-digest

    # Process a specific batch ID
    python -m notifications.process_notification_queue --daily-digest --batch-id 2026-10-17

    # Dry run (don't send emails or update the queue)
    python -m notifications.process_notification_queue --daily-digest --dry-run
"""

import argparse
import os
import time
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from models.types import BatchID
from notifications.email_sender import send_insight_digest
from notifications.error_logger import log_notification_error
from repositories.email_queue import get_pending_email_alerts_by_user, mark_alerts
from repositories.preferences import get_notification_preference, get_user_profiles

# Max 10 emails/second
SEND_INTERVAL_SECONDS = 0.1


def _yesterday_batch_id() -> BatchID:
    tz = ZoneInfo(os.getenv("DIGEST_TIMEZONE", "UTC"))
    return (datetime.now(tz).date() - timedelta(days=1)).isoformat()


def process_insight_digests(
    batch_id: BatchID | None = None, dry_run: bool = False
) -> dict[str, int]:
    """
    Send one digest email per user covering their queued insight alerts.

    Args:
        batch_id: Digest batch ID (YYYY-MM-DD). Defaults to yesterday.
        dry_run: If True, don't send emails or update the queue

    Returns:
        Dictionary with stats: sent, failed, skipped
    """
    batch_id = batch_id or _yesterday_batch_id()
    print(f"Processing insight digests for batch: {batch_id}")

    alerts_by_user = get_pending_email_alerts_by_user(batch_id)
    if not alerts_by_user:
        print("No pending insight alerts to process.")
        return {"sent": 0, "failed": 0, "skipped": 0}

    print(f"Found alerts for {len(alerts_by_user)} users")

    profiles = get_user_profiles(list(alerts_by_user.keys()))
    stats = {"sent": 0, "failed": 0, "skipped": 0}

    for user_id, alerts in alerts_by_user.items():
        print(f"\nProcessing user {user_id} ({len(alerts)} alerts)...")
        alert_ids = [a["id"] for a in alerts]

        profile = profiles.get(user_id)
        if profile is None:
            print("  ⚠️  User has no email address, skipping")
            stats["skipped"] += 1
            continue

        # Preferences may have changed since the alerts were queued
        preference = get_notification_preference(user_id)
        if preference is None or not preference.enabled or not preference.email_notifications:
            print("  ⚠️  Email alerts disabled for user, skipping")
            stats["skipped"] += 1
            if not dry_run:
                mark_alerts(alert_ids, "failed", "User email notifications disabled")
            continue

        if dry_run:
            print(f"  [DRY RUN] Would send digest to user {user_id}")
            stats["sent"] += 1
            continue

        result = send_insight_digest(user_id, profile.email, alerts)
        if result["success"]:
            print(f"  ✓ Sent digest to user {user_id}")
            stats["sent"] += 1
            mark_alerts(alert_ids, "sent")
        else:
            error_msg = result.get("error", "Unknown error")
            print(f"  ✗ Failed to send to user {user_id}: {error_msg}")
            stats["failed"] += 1
            error_file = log_notification_error(
                error_type="digest",
                error_message=error_msg,
                context={
                    "user_id": user_id,
                    "batch_id": batch_id,
                    "insight_ids": [a["insight_id"] for a in alerts],
                },
            )
            print(f"    Error details logged to: {error_file}")
            mark_alerts(alert_ids, "failed", error_msg)

        time.sleep(SEND_INTERVAL_SECONDS)

    print(f"\n{'=' * 60}")
    print("Insight Digest Processing Complete")
    print(f"{'=' * 60}")
    print(f"Batch ID: {batch_id}")
    print(f"Sent:     {stats['sent']}")
    print(f"Failed:   {stats['failed']}")
    print(f"Skipped:  {stats['skipped']}")

    return stats


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Send queued insight alert digests")
    parser.add_argument(
        "--daily-digest", action="store_true", help="Send daily digest emails"
    )
    parser.add_argument(
        "--batch-id",
        type=str,
        help="Batch ID to process (YYYY-MM-DD, defaults to yesterday)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run mode (don't send emails)",
    )

    args = parser.parse_args()
    if not args.daily_digest:
        parser.error("Must specify --daily-digest")

    process_insight_digests(batch_id=args.batch_id, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
