"""
Error logging utility for insight notifications.

Writes one timestamped report file per failure so that a broken push
transport or activity insert can be inspected after the fact without
interrupting insight creation.
"""

import os
import uuid
from datetime import datetime
from typing import Any


def _log_dir() -> str:
    default_dir = os.path.join(os.path.dirname(__file__), "logs")
    return os.getenv("NOTIFICATION_LOG_DIR", default_dir)


def log_notification_error(
    error_type: str, error_message: str, context: dict[str, Any] | None = None
) -> str:
    """
    Log a notification error to a timestamped file.

    Args:
        error_type: Stage that failed ('matching', 'activity', 'broadcast',
            'email', 'queuing', 'digest')
        error_message: The error message
        context: Optional extra details (insight_id, user_id, ...)

    Returns:
        Path to the report file, or "" if it could not be written
    """
    log_dir = _log_dir()

    # Suffix keeps reports from the same fan-out loop apart
    now = datetime.now()
    filename = os.path.join(
        log_dir,
        f"insight_{error_type}_error_{now.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}.txt",
    )

    try:
        os.makedirs(log_dir, exist_ok=True)
        with open(filename, "w", encoding="utf-8") as f:
            f.write(f"Insight Notification Error Report - {now}\n")
            f.write("=" * 60 + "\n\n")
            f.write(f"Error Type: {error_type}\n")
            f.write(f"Error Message: {error_message}\n\n")

            if context:
                f.write("Context:\n")
                f.write("-" * 60 + "\n")
                for key, value in context.items():
                    f.write(f"{key}: {value}\n")
    except OSError as e:
        print(f"  ⚠️  Could not write {error_type} error report to {log_dir}: {e}")
        return ""

    return filename
