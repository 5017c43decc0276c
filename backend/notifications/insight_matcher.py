"""
Insight matching logic for the notification system.

Scores a newly created marketing insight against user notification
preferences. Pure functions only: fetching preferences and performing
side effects live in notifications.insight_pipeline and notifications.fan_out.
"""

from typing import Iterable, List, Optional

from models.insight import MarketingInsight
from models.notification import InsightScore, NotificationPreference
from models.types import UserID

# Per-criterion weights
PROPERTY_TYPE_WEIGHT = 1
LOCATION_WEIGHT = 1
CATEGORY_WEIGHT = 2
KEYWORD_LIST_WEIGHT = 3
SUMMARY_KEYWORD_WEIGHT = 1


def score_insight(
    preference: NotificationPreference, insight: MarketingInsight
) -> Optional[InsightScore]:
    """
    Score a single insight against a single preference record.

    Property type, location and category are hard gates: when the user
    listed values for that dimension and the insight carries the field,
    a mismatch excludes the user. Keyword and summary signals only add
    score. Empty preference lists and missing insight fields are skipped.

    Args:
        preference: User's notification preference
        insight: Insight to score

    Returns:
        InsightScore, or None if the preference is disabled
    """
    if not preference.enabled:
        return None

    matches = True
    breakdown: dict[str, int] = {}
    gates_failed: list[str] = []

    # Property type filter (exact)
    if preference.property_types and insight.property_type:
        if insight.property_type in preference.property_types:
            breakdown["property_type"] = PROPERTY_TYPE_WEIGHT
        else:
            matches = False
            gates_failed.append("property_type")

    # Location filter (case-insensitive substring of the insight location)
    if preference.locations and insight.location:
        insight_location = insight.location.lower()
        if any(loc.lower() in insight_location for loc in preference.locations):
            breakdown["location"] = LOCATION_WEIGHT
        else:
            matches = False
            gates_failed.append("location")

    # Category filter (exact), weighted double
    if preference.categories and insight.category:
        if insight.category in preference.categories:
            breakdown["category"] = CATEGORY_WEIGHT
        else:
            matches = False
            gates_failed.append("category")

    # Keyword list bonus, counted once, never gates
    if preference.keyword_matches and insight.keywords:
        if any(kw in insight.keywords for kw in preference.keyword_matches):
            breakdown["keywords"] = KEYWORD_LIST_WEIGHT

    # Summary text bonus, one point per keyword found
    if insight.summary:
        summary = insight.summary.lower()
        hits = sum(1 for kw in preference.keyword_matches if kw.lower() in summary)
        if hits:
            breakdown["summary"] = hits * SUMMARY_KEYWORD_WEIGHT

    score = sum(breakdown.values())

    return InsightScore(
        user_id=preference.user_id,
        matched=matches and score >= preference.relevance_threshold,
        score=score,
        breakdown=breakdown,
        gates_failed=gates_failed,
    )


def rank_insight_matches(
    insight: MarketingInsight, preferences: Iterable[NotificationPreference]
) -> List[InsightScore]:
    """
    Score an insight against every preference and keep the matches.

    Returns:
        Matched scores sorted by score descending (ties keep input order)
    """
    scores = []
    for preference in preferences:
        result = score_insight(preference, insight)
        if result is not None and result.matched:
            scores.append(result)

    return sorted(scores, key=lambda s: s.score, reverse=True)


def match_insight_to_preferences(
    insight: MarketingInsight, preferences: Iterable[NotificationPreference]
) -> List[UserID]:
    """
    Find all users whose preferences match a given insight.

    Args:
        insight: Newly created insight
        preferences: Preference records to evaluate (disabled ones are skipped)

    Returns:
        User IDs in preference order
    """
    matched_user_ids = []
    for preference in preferences:
        result = score_insight(preference, insight)
        if result is not None and result.matched:
            matched_user_ids.append(preference.user_id)

    return matched_user_ids
