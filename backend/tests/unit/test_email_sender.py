"""
Unit tests for notifications/email_sender.py

Tests alert and digest content, unsubscribe links and Resend API
integration.
"""

import os
import unittest
from unittest.mock import patch

from notifications.email_sender import (
    _build_unsubscribe_url,
    _prepare_digest_data,
    _prepare_insight,
    send_insight_alert,
    send_insight_digest,
)
from notifications.unsubscribe_tokens import validate_unsubscribe_token
from tests.fixtures.preference_factory import build_insight, create_test_insight

TEST_ENV = {
    "UNSUBSCRIBE_SECRET_KEY": "test-secret-key-for-testing-must-be-at-least-32-chars-long",
    "FRONTEND_BASE_URL": "https://test.example.com",
}


class TestPrepareInsight(unittest.TestCase):
    """Tests for _prepare_insight()"""

    @patch.dict(os.environ, TEST_ENV)
    def test_formats_fields(self):
        insight = create_test_insight(
            insight_id=9,
            category="luxury",
            location="Bay Area",
            keywords=["a", "b", "c", "d", "e", "f"],
        )

        result = _prepare_insight(insight, score=4)

        self.assertEqual(result["title"], "Spring Luxury Trends")
        self.assertEqual(result["meta"], "luxury • Bay Area")
        self.assertEqual(result["date_formatted"], "October 17, 2026")
        self.assertEqual(len(result["keywords"]), 5)
        self.assertEqual(result["score"], 4)
        self.assertEqual(
            result["insight_url"], "https://test.example.com/marketing-insights/9"
        )

    def test_missing_date(self):
        insight = create_test_insight(created_at=None)

        self.assertEqual(_prepare_insight(insight)["date_formatted"], "Unknown date")

    def test_untitled_uses_external_id(self):
        insight = create_test_insight(insight_id=3, title=None)

        self.assertEqual(_prepare_insight(insight)["title"], "ins_test_3")


class TestPrepareDigestData(unittest.TestCase):
    """Tests for _prepare_digest_data()"""

    def test_deduplicates_and_sorts_newest_first(self):
        older = create_test_insight(insight_id=1, created_at="2026-10-15T08:00:00+00:00")
        newer = create_test_insight(insight_id=2, created_at="2026-10-17T08:00:00+00:00")
        alerts = [
            {"id": 1, "insight": older},
            {"id": 2, "insight": newer},
            {"id": 3, "insight": older},
        ]

        result = _prepare_digest_data(alerts)

        self.assertEqual(len(result), 2)
        self.assertTrue(result[0]["insight_url"].endswith("/2"))

    def test_skips_alerts_without_insight(self):
        self.assertEqual(_prepare_digest_data([{"id": 1, "insight": None}]), [])


@patch.dict(os.environ, TEST_ENV)
class TestSendInsightAlert(unittest.TestCase):
    """Tests for send_insight_alert()"""

    @patch("notifications.email_sender.resend")
    def test_success(self, mock_resend):
        mock_resend.Emails.send.return_value = {"id": "email-123"}
        insight = build_insight(insight_id=5, title="Video Marketing", summary="Short videos win")

        result = send_insight_alert(7, "agent@example.com", insight, score=6)

        self.assertEqual(result, {"success": True, "email_id": "email-123"})
        params = mock_resend.Emails.send.call_args.args[0]
        self.assertEqual(params["to"], "agent@example.com")
        self.assertEqual(params["subject"], 'New marketing insight: "Video Marketing"')
        self.assertIn("Short videos win", params["html"])
        self.assertIn("Relevance score for you: 6", params["text"])
        self.assertIn("/marketing-insights/5", params["text"])

    @patch("notifications.email_sender.resend")
    def test_unsubscribe_header(self, mock_resend):
        mock_resend.Emails.send.return_value = {"id": "email-123"}

        send_insight_alert(7, "agent@example.com", build_insight())

        headers = mock_resend.Emails.send.call_args.args[0]["headers"]
        self.assertIn("List-Unsubscribe", headers)
        self.assertEqual(headers["List-Unsubscribe-Post"], "List-Unsubscribe=One-Click")

    @patch("notifications.email_sender.resend")
    def test_html_escaped(self, mock_resend):
        mock_resend.Emails.send.return_value = {"id": "email-123"}
        insight = build_insight(summary="<script>alert(1)</script>")

        send_insight_alert(7, "agent@example.com", insight)

        html = mock_resend.Emails.send.call_args.args[0]["html"]
        self.assertNotIn("<script>", html)
        self.assertIn("&lt;script&gt;", html)

    @patch("notifications.email_sender.resend")
    def test_api_error_returned(self, mock_resend):
        mock_resend.Emails.send.side_effect = Exception("API key invalid")

        result = send_insight_alert(7, "agent@example.com", build_insight())

        self.assertFalse(result["success"])
        self.assertEqual(result["error"], "API key invalid")


@patch.dict(os.environ, TEST_ENV)
class TestSendInsightDigest(unittest.TestCase):
    """Tests for send_insight_digest()"""

    @patch("notifications.email_sender.resend")
    def test_subject_counts_insights(self, mock_resend):
        mock_resend.Emails.send.return_value = {"id": "email-456"}
        alerts = [
            {"id": 1, "insight": create_test_insight(insight_id=1)},
            {"id": 2, "insight": create_test_insight(insight_id=2)},
        ]

        result = send_insight_digest(7, "agent@example.com", alerts)

        self.assertTrue(result["success"])
        params = mock_resend.Emails.send.call_args.args[0]
        self.assertEqual(params["subject"], "Your Marketing Insight Digest (2 insights)")

    @patch("notifications.email_sender.resend")
    def test_empty_digest_not_sent(self, mock_resend):
        result = send_insight_digest(7, "agent@example.com", [])

        self.assertFalse(result["success"])
        mock_resend.Emails.send.assert_not_called()


@patch.dict(os.environ, TEST_ENV)
class TestUnsubscribeUrl(unittest.TestCase):
    def test_url_contains_valid_token(self):
        url = _build_unsubscribe_url(7)

        self.assertTrue(
            url.startswith("https://test.example.com/notification-preferences/unsubscribe?token=")
        )
        token = url.split("?token=")[1]
        self.assertEqual(validate_unsubscribe_token(token), 7)


if __name__ == "__main__":
    unittest.main()
