"""
Integration tests for the insight notification flow.

Runs create_marketing_insight() end to end against a table-routed
Supabase mock and a mocked Resend client: insert, match, activities,
push payloads, immediate emails and digest queuing.
"""

import os
import unittest
from contextlib import ExitStack
from unittest.mock import Mock, patch

from models.insight import MarketingInsightCreate
from notifications.insight_pipeline import create_marketing_insight
from tests.fixtures.mock_helpers import create_routed_supabase
from tests.fixtures.preference_factory import (
    create_test_insight,
    create_test_preference,
    create_test_user,
)

REPOSITORY_MODULES = (
    "repositories.preferences",
    "repositories.insights",
    "repositories.activities",
    "repositories.email_queue",
)


def _seed_preferences():
    return [
        create_test_preference(
            user_id=1,
            categories=["luxury", "commercial"],
            property_types=["luxury", "commercial"],
            locations=["Coastal Regions", "Metropolitan Areas"],
            keyword_matches=["luxury", "high-end", "investment"],
            relevance_threshold=3,
            email_notifications=True,
            frequency_limit="daily",
        ),
        create_test_preference(
            user_id=2,
            categories=["residential", "neighborhood"],
            property_types=["residential", "condo"],
            locations=["Urban Centers", "Suburban Areas"],
            keyword_matches=["first-time buyer", "millennial", "affordable"],
            relevance_threshold=2,
            email_notifications=True,
        ),
        create_test_preference(
            user_id=3,
            categories=["residential", "luxury", "commercial", "neighborhood"],
            property_types=["residential", "luxury", "commercial", "condo"],
            locations=["Coastal Regions", "Urban Centers", "Suburban Areas"],
            keyword_matches=["luxury", "high-end", "first-time buyer", "trending"],
            relevance_threshold=1,
            email_notifications=True,
            app_notifications=False,
        ),
    ]


class TestInsightNotificationFlow(unittest.TestCase):
    """End-to-end insight creation with notification side effects."""

    def setUp(self):
        self.stored_insight = create_test_insight(
            insight_id=101,
            title="Coastal Luxury Outlook",
            category="luxury",
            property_type="luxury",
            location="Coastal Regions - Malibu",
            keywords=["luxury", "sustainability"],
            summary="Luxury coastal buyers favour high-end sustainable design",
            campaign_id=3,
        )
        self.supabase = create_routed_supabase(
            {
                "notification_preferences": _seed_preferences(),
                "marketing_insights": [self.stored_insight],
                "activities": [{"id": 1}],
                "users": [create_test_user(user_id=3, email="three@example.com")],
                "insight_email_queue": [],
            }
        )

        self.stack = ExitStack()
        for module in REPOSITORY_MODULES:
            self.stack.enter_context(
                patch(f"{module}.get_supabase_client", return_value=self.supabase)
            )
        self.mock_resend = self.stack.enter_context(
            patch("notifications.email_sender.resend")
        )
        self.mock_resend.Emails.send.return_value = {"id": "email-1"}
        self.stack.enter_context(patch("builtins.print"))
        self.stack.enter_context(
            patch.dict(
                os.environ,
                {"UNSUBSCRIBE_SECRET_KEY": "integration-secret-key-at-least-32-chars"},
            )
        )

    def tearDown(self):
        self.stack.close()

    def _create(self, broadcast=None):
        data = MarketingInsightCreate(
            insight_id="ins_test_101",
            title="Coastal Luxury Outlook",
            category="luxury",
            property_type="luxury",
            location="Coastal Regions - Malibu",
            keywords=["luxury", "sustainability"],
            summary="Luxury coastal buyers favour high-end sustainable design",
            campaign_id=3,
            created_by=1,
        )
        return create_marketing_insight(data, broadcast=broadcast)

    def test_full_flow(self):
        broadcast = Mock()

        insight = self._create(broadcast)

        self.assertEqual(insight.id, 101)

        # Users 1 and 3 match; user 2 fails the property type gate
        activities = self.supabase.tables["activities"].insert.call_args_list
        self.assertEqual([c.args[0]["user_id"] for c in activities], [1, 3])
        self.assertTrue(all(c.args[0]["campaign_id"] == 3 for c in activities))

        # Only user 1 has app notifications enabled
        broadcast.assert_called_once()
        payload = broadcast.call_args.args[0]
        self.assertEqual(payload["id"], "insight-101-1")
        self.assertEqual(payload["data"]["score"], 9)

        # User 1 is on a daily digest, user 3 is emailed immediately
        queued = self.supabase.tables["insight_email_queue"].insert.call_args_list
        self.assertEqual([c.args[0]["user_id"] for c in queued], [1])
        self.mock_resend.Emails.send.assert_called_once()
        self.assertEqual(
            self.mock_resend.Emails.send.call_args.args[0]["to"], "three@example.com"
        )

    def test_broadcast_failure_keeps_insight(self):
        broadcast = Mock(side_effect=ConnectionError("no websocket clients"))

        with patch("notifications.fan_out.log_notification_error", return_value="/tmp/e.txt"):
            insight = self._create(broadcast)

        self.assertEqual(insight.id, 101)
        self.assertEqual(self.supabase.tables["activities"].insert.call_count, 2)

    def test_without_transport(self):
        insight = self._create()

        self.assertEqual(insight.id, 101)
        self.assertEqual(self.supabase.tables["activities"].insert.call_count, 2)


if __name__ == "__main__":
    unittest.main()
