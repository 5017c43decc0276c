"""
Signed tokens for one-click "stop insight alerts" links.

Tokens carry only the user ID, are signed with HMAC-SHA256 and expire
after 90 days. Nothing is stored server-side.
"""

import os
import hashlib
from typing import Optional
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from models.types import UserID
from repositories.preferences import disable_notifications

UNSUBSCRIBE_SALT = "insight-alerts-unsubscribe"
DEFAULT_MAX_AGE_DAYS = 90


def _get_serializer() -> URLSafeTimedSerializer:
    """
    Raises:
        ValueError: If UNSUBSCRIBE_SECRET_KEY is not set
    """
    secret_key = os.getenv("UNSUBSCRIBE_SECRET_KEY")
    if not secret_key:
        raise ValueError("UNSUBSCRIBE_SECRET_KEY environment variable must be set.")

    return URLSafeTimedSerializer(
        secret_key,
        salt=UNSUBSCRIBE_SALT,
        signer_kwargs={"digest_method": hashlib.sha256},
    )


def generate_unsubscribe_token(user_id: UserID) -> str:
    """
    Generate a URL-safe signed token (payload.timestamp.signature) for a user.

    Raises:
        ValueError: If UNSUBSCRIBE_SECRET_KEY is not set
    """
    return _get_serializer().dumps(user_id)


def validate_unsubscribe_token(
    token: str, max_age_days: int = DEFAULT_MAX_AGE_DAYS
) -> Optional[UserID]:
    """
    Validate a token and extract the user ID.

    Never raises: invalid, expired or malformed tokens return None.
    """
    try:
        serializer = _get_serializer()
        user_id = serializer.loads(token, max_age=max_age_days * 24 * 60 * 60)
    except (BadSignature, SignatureExpired, ValueError, TypeError):
        return None

    if not isinstance(user_id, int) or isinstance(user_id, bool):
        return None
    return UserID(user_id)


def unsubscribe_with_token(token: str) -> bool:
    """
    Disable insight alerts for the user named by a token.

    Returns:
        True if a preference record was disabled
    """
    user_id = validate_unsubscribe_token(token)
    if user_id is None:
        return False

    return disable_notifications(user_id)
