# app/utils/email_service.py

import logging
from typing import Any
import resend

from app.core.config import settings

log = logging.getLogger(__name__)


def send_invitation_email(
    to_email: str,
    venue_name: str,
    invite_url: str,
    role: str,
) -> dict[str, Any]:
    """
    Send a staff invitation through RESEND.

    Args:
        to_email: Invitee address
        venue_name: Venue the invitee is joining
        invite_url: Link carrying the one-time token
        role: "tenant_admin" or "staff"

    Returns:
        dict with 'success' (bool) and 'message' (str)
    """
    if not settings.resend_api_key or not settings.invitation_from_email:
        # No mail provider configured; the link is still returned to the inviter
        log.info("invitation email not sent (RESEND not configured) to=%s url=%s", to_email, invite_url)
        return {"success": False, "message": "RESEND not configured"}

    html_content = _build_invitation_html(venue_name, invite_url, role)

    try:
        # Set API key (this is a global setting in resend library)
        resend.api_key = settings.resend_api_key

        params = {
            "from": settings.invitation_from_email,
            "to": [to_email],
            "subject": f"You're invited to join {venue_name}",
            "html": html_content,
        }
        email_result = resend.Emails.send(params)

        log.info("invitation email sent to=%s id=%s", to_email, email_result.get("id"))
        return {
            "success": True,
            "message": f"Email sent successfully (ID: {email_result.get('id', 'unknown')})",
            "email_id": email_result.get("id"),
        }

    except Exception as e:
        log.warning("invitation email failed to=%s error=%s (%s)", to_email, e, type(e).__name__)
        return {"success": False, "message": f"Failed to send email: {e}"}


def _build_invitation_html(venue_name: str, invite_url: str, role: str) -> str:
    role_label = "an admin" if role == "tenant_admin" else "a staff member"
    return f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"></head>
    <body style="font-family: sans-serif; padding: 40px; background-color: #f3f4f6;">
        <div style="max-width: 500px; margin: 0 auto; background: white; padding: 32px; border-radius: 8px;">
            <h1 style="color: #111827; margin-top: 0;">Join {venue_name}</h1>
            <p style="color: #374151; line-height: 1.6;">
                You have been invited to join <strong>{venue_name}</strong> as {role_label}.
            </p>
            <p style="text-align: center; margin-top: 32px;">
                <a href="{invite_url}" style="display: inline-block; background-color: #111827; color: #ffffff; text-decoration: none; padding: 14px 32px; border-radius: 8px; font-weight: 600;">Accept invitation</a>
            </p>
            <p style="color: #9ca3af; font-size: 12px;">This link expires in {settings.invitation_ttl_days} days.</p>
        </div>
    </body>
    </html>
    """
