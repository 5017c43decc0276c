"""
Email delivery of insight alerts via the Resend API.

Immediate alerts carry a single insight; digests group every queued
insight for one user into one message.
"""

import os
from datetime import datetime
from html import escape
from typing import Any, Dict, List, Optional

import resend

from models.insight import MarketingInsight
from models.types import UserID
from notifications.unsubscribe_tokens import generate_unsubscribe_token

resend.api_key = os.getenv("RESEND_API_KEY")

SENDER_NAME = "CampaignPro Insights"
MAX_KEYWORDS_SHOWN = 5

EMAIL_STYLE = """
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #f5f5f5; }
        .container { background-color: white; padding: 30px; border-radius: 8px; }
        .header { border-bottom: 3px solid #1a73e8; padding-bottom: 15px; margin-bottom: 25px; }
        h1 { margin: 0; color: #1a73e8; font-size: 24px; }
        .insight { border-left: 4px solid #e5e7eb; padding: 15px; margin-bottom: 20px; background-color: #f9fafb; }
        .insight-title { font-size: 18px; font-weight: 600; margin: 0 0 8px 0; }
        .insight-meta { color: #6b7280; font-size: 13px; }
        .keyword { background-color: #dbeafe; color: #1e40af; padding: 2px 8px; border-radius: 12px; font-size: 12px; }
        .footer { margin-top: 30px; padding-top: 20px; border-top: 1px solid #e5e7eb; font-size: 13px; color: #6b7280; text-align: center; }
"""


def _frontend_base_url() -> str:
    return os.getenv("FRONTEND_BASE_URL", "http://localhost:5000")


def _from_address() -> str:
    from_email = os.getenv("NOTIFICATION_FROM_EMAIL", "insights@campaignpro.example.com")
    return f"{SENDER_NAME} <{from_email}>"


def _build_unsubscribe_url(user_id: UserID) -> str:
    token = generate_unsubscribe_token(user_id)
    return f"{_frontend_base_url()}/notification-preferences/unsubscribe?token={token}"


def _prepare_insight(insight: Dict[str, Any], score: Optional[int] = None) -> Dict[str, Any]:
    """Extract and format the fields shown for one insight."""
    created_at = insight.get("created_at") or ""
    if created_at:
        try:
            date_obj = datetime.fromisoformat(str(created_at).replace("Z", "+00:00"))
            date_formatted = date_obj.strftime("%B %d, %Y")
        except ValueError:
            date_formatted = str(created_at)[:10]
    else:
        date_formatted = "Unknown date"

    meta = [
        value
        for value in (insight.get("category"), insight.get("property_type"), insight.get("location"))
        if value
    ]

    return {
        "title": insight.get("title") or insight.get("insight_id") or "Untitled Insight",
        "meta": " • ".join(meta),
        "date_formatted": date_formatted,
        "summary": insight.get("summary") or "",
        "keywords": (insight.get("keywords") or [])[:MAX_KEYWORDS_SHOWN],
        "score": score,
        "insight_url": f"{_frontend_base_url()}/marketing-insights/{insight.get('id', '')}",
    }


def _prepare_digest_data(alerts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Deduplicate queued alerts by insight, newest first."""
    by_insight: Dict[Any, Dict[str, Any]] = {}
    for alert in alerts:
        insight = alert.get("insight") or {}
        insight_id = insight.get("id")
        if insight_id is None or insight_id in by_insight:
            continue
        by_insight[insight_id] = insight

    ordered = sorted(
        by_insight.values(), key=lambda i: str(i.get("created_at") or ""), reverse=True
    )
    return [_prepare_insight(insight) for insight in ordered]


def _build_html(heading: str, prepared: List[Dict[str, Any]], unsubscribe_url: str) -> str:
    preferences_url = f"{_frontend_base_url()}/notification-preferences"

    html = f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{escape(heading)}</title>
    <style>{EMAIL_STYLE}</style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>{escape(heading)}</h1></div>
"""
    for item in prepared:
        html += f"""
        <div class="insight">
            <h2 class="insight-title">{escape(item['title'])}</h2>
            <div class="insight-meta">{escape(item['meta'])} • {item['date_formatted']}</div>
"""
        if item["score"] is not None:
            html += f"""            <div class="insight-meta">Relevance score for you: {item['score']}</div>\n"""
        if item["summary"]:
            html += f"""            <p>{escape(item['summary'])}</p>\n"""
        if item["keywords"]:
            chips = " ".join(
                f'<span class="keyword">{escape(kw)}</span>' for kw in item["keywords"]
            )
            html += f"""            <div>{chips}</div>\n"""
        html += f"""            <a href="{item['insight_url']}">View insight →</a>
        </div>
"""

    html += f"""
        <div class="footer">
            <p>You received this email because your notification preferences matched these insights.</p>
            <p><a href="{preferences_url}">Manage notification preferences</a> | <a href="{unsubscribe_url}">Unsubscribe</a></p>
        </div>
    </div>
</body>
</html>
"""
    return html


def _build_text(heading: str, prepared: List[Dict[str, Any]], unsubscribe_url: str) -> str:
    text = f"{heading.upper()}\n\n"
    for i, item in enumerate(prepared, 1):
        text += f"{i}. {item['title']}\n"
        if item["meta"]:
            text += f"{item['meta']}\n"
        text += f"Date: {item['date_formatted']}\n"
        if item["score"] is not None:
            text += f"Relevance score for you: {item['score']}\n"
        if item["summary"]:
            text += f"\n{item['summary']}\n"
        if item["keywords"]:
            text += f"\nKeywords: {', '.join(item['keywords'])}\n"
        text += f"\nView insight: {item['insight_url']}\n\n"
        text += "-" * 60 + "\n\n"

    text += f"Manage notification preferences: {_frontend_base_url()}/notification-preferences\n"
    text += f"Unsubscribe: {unsubscribe_url}\n"
    return text


def _send(user_id: UserID, user_email: str, subject: str, heading: str,
          prepared: List[Dict[str, Any]]) -> Dict[str, Any]:
    try:
        unsubscribe_url = _build_unsubscribe_url(user_id)
        response = resend.Emails.send({
            "from": _from_address(),
            "to": user_email,
            "subject": subject,
            "html": _build_html(heading, prepared, unsubscribe_url),
            "text": _build_text(heading, prepared, unsubscribe_url),
            "headers": {
                "List-Unsubscribe": f"<{unsubscribe_url}>",
                "List-Unsubscribe-Post": "List-Unsubscribe=One-Click",
            },
        })
        return {"success": True, "email_id": response.get("id")}
    except Exception as e:
        return {"success": False, "error": str(e)}


def send_insight_alert(
    user_id: UserID,
    user_email: str,
    insight: MarketingInsight,
    score: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Send an immediate alert for one matched insight.

    Returns:
        {'success': True, 'email_id': ...} or {'success': False, 'error': ...}
    """
    prepared = [_prepare_insight(insight.model_dump(mode="json"), score)]
    subject = f'New marketing insight: "{insight.display_title}"'
    return _send(user_id, user_email, subject, "New Marketing Insight", prepared)


def send_insight_digest(
    user_id: UserID, user_email: str, alerts: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Send one digest email covering every queued alert for a user.

    Args:
        alerts: Queue rows joined with their insight under the 'insight' key
    """
    prepared = _prepare_digest_data(alerts)
    if not prepared:
        return {"success": False, "error": "No insights to send"}

    subject = f"Your Marketing Insight Digest ({len(prepared)} insights)"
    return _send(user_id, user_email, subject, "Marketing Insight Digest", prepared)
