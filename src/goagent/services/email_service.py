"""SendGrid email service for account notifications.

Uses asyncio.to_thread to wrap the synchronous SendGrid client.
"""

import asyncio
import html
import logging
import urllib.parse

import sendgrid
from sendgrid.helpers.mail import Email, HtmlContent, Mail, To

logger = logging.getLogger(__name__)


def _get_config():
    """Get email config from app settings (lazy to avoid import-time issues)."""
    from goagent.app.config import get_settings
    s = get_settings()
    return s.sendgrid_api_key, s.mail_from, s.frontend_url


def _get_client() -> sendgrid.SendGridAPIClient:
    """Return a configured SendGrid API client."""
    api_key, _, _ = _get_config()
    return sendgrid.SendGridAPIClient(api_key=api_key)


def _build_reset_html(full_name: str, reset_url: str, expiry_minutes: int) -> str:
    name = html.escape(full_name or "there")
    url = html.escape(reset_url, quote=True)
    return f"""
    <div style="font-family: Arial, sans-serif; color: #0f172a; max-width: 520px;">
        <h2 style="margin-bottom: 8px;">Reset your GoAgent password</h2>
        <p>Hi {name},</p>
        <p>We received a request to reset the password on your GoAgent account.
        The link below expires in {expiry_minutes} minutes.</p>
        <p><a href="{url}" style="background: #0f172a; color: #fff; padding: 12px 20px;
            border-radius: 8px; text-decoration: none;">Choose a new password</a></p>
        <p style="color: #64748b; font-size: 13px;">If you did not request this, ignore this email.</p>
    </div>
    """


def _send_mail(mail: Mail) -> bool:
    """Synchronous send via SendGrid. Returns True on success."""
    client = _get_client()
    response = client.send(mail)
    if response.status_code in (200, 201, 202):
        return True
    logger.error(
        "SendGrid returned status %s: %s",
        response.status_code,
        response.body,
    )
    return False


async def send_password_reset(email: str, full_name: str, token: str, expiry_minutes: int) -> bool:
    """Send the password reset link.

    Returns:
        True on success, False when mail is not configured or sending failed.
    """
    api_key, mail_from, frontend_url = _get_config()
    if not api_key:
        logger.warning("SENDGRID_API_KEY not set, skipping password reset email for %s", email)
        return False

    reset_url = f"{frontend_url.rstrip('/')}/reset-password?{urllib.parse.urlencode({'token': token})}"
    try:
        mail = Mail(
            from_email=Email(mail_from, "GoAgent"),
            to_emails=To(email),
            subject="Reset your GoAgent password",
            html_content=HtmlContent(_build_reset_html(full_name, reset_url, expiry_minutes)),
        )
        result = await asyncio.to_thread(_send_mail, mail)
        if result:
            logger.info("Password reset email sent to %s", email)
        return result
    except Exception:
        logger.exception("Failed to send password reset email to %s", email)
        return False
