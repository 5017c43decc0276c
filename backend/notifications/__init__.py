"""
Insight notification system for the campaign backend.

This module handles:
- Scoring new marketing insights against user notification preferences
- Fanning out activity records and push notifications to matched users
- Emailing alerts immediately or as daily digests via Resend
"""

from .insight_matcher import (
    match_insight_to_preferences,
    rank_insight_matches,
    score_insight,
)
from .fan_out import noop_broadcast, notify_matches

__all__ = [
    'score_insight',
    'rank_insight_matches',
    'match_insight_to_preferences',
    'notify_matches',
    'noop_broadcast',
]
