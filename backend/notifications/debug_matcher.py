"""
Debug utility for insight matching.

Replays matching for recent insights and prints per-user scores without
writing activities, pushing or emailing.

Usage:
    python -m notifications.debug_matcher
    python -m notifications.debug_matcher --limit 3 --all-scores
"""

import argparse

from notifications.insight_matcher import rank_insight_matches, score_insight
from repositories.insights import get_all_marketing_insights
from repositories.preferences import get_all_enabled_preferences


def replay_matching(limit: int = 10, all_scores: bool = False) -> None:
    """
    Print match results for the most recent insights.

    Args:
        limit: Number of insights to replay
        all_scores: Also print users that did not match
    """
    insights = get_all_marketing_insights(limit=limit)
    if not insights:
        print("No marketing insights found in database")
        return

    preferences = get_all_enabled_preferences()
    print(f"Loaded {len(preferences)} enabled preference record(s)")

    for insight in insights:
        print("=" * 60)
        print(f"Insight: {insight.display_title[:60]}")
        print(f"ID: {insight.id}  Category: {insight.category}  Type: {insight.property_type}")
        print(f"Location: {insight.location}  Keywords: {insight.keywords}")
        print()

        ranked = rank_insight_matches(insight, preferences)
        if not ranked:
            print("No matching users")
        for result in ranked:
            print(f"  ✓ User {result.user_id}: score {result.score} {result.breakdown}")

        if all_scores:
            for preference in preferences:
                result = score_insight(preference, insight)
                if result is None or result.matched:
                    continue
                reason = (
                    f"failed {', '.join(result.gates_failed)}"
                    if result.gates_failed
                    else f"below threshold {preference.relevance_threshold}"
                )
                print(f"  ✗ User {result.user_id}: score {result.score} ({reason})")
        print()

    print("=" * 60)
    print("Replay complete")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Replay insight matching (read-only)")
    parser.add_argument("--limit", type=int, default=10, help="Number of recent insights")
    parser.add_argument(
        "--all-scores", action="store_true", help="Also show users that did not match"
    )

    args = parser.parse_args()
    replay_matching(limit=args.limit, all_scores=args.all_scores)


if __name__ == "__main__":
    main()
