"""
Email Service using Resend

Sends notifications to community members about their school edit
proposals.
"""

import asyncio
import logging
from html import escape

import resend

from schoolscope.core.config import settings

logger = logging.getLogger(__name__)

# Initialize Resend with API key
resend.api_key = settings.resend_api_key

_STYLE = """
        body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
        .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
        .header { color: #1e3a8a; margin-bottom: 24px; }
        .change { background-color: #f3f4f6; border-radius: 8px; padding: 16px; margin: 24px 0; }
        .button { display: inline-block; background-color: #1e3a8a; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }
        .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        True if email was sent successfully
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Run sync Resend call in thread pool to avoid blocking event loop
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def _render(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">{title}</h1>
            {body}
            <div class="footer">
                <p>Thanks for helping keep school information accurate.</p>
                <p>SchoolScope</p>
            </div>
        </div>
    </body>
    </html>
    """


async def send_edit_approved(
    to_email: str,
    user_name: str,
    school_name: str,
    field_label: str,
    new_value: str,
    school_id: str,
) -> bool:
    """Tell a proposer their edit has been applied."""
    # Escape user inputs to prevent XSS
    safe_user_name = escape(user_name)
    safe_school_name = escape(school_name)
    safe_field_label = escape(field_label)
    safe_new_value = escape(new_value)

    school_url = f"{settings.frontend_url}/schools/{escape(school_id)}"
    body = f"""
            <p>Hello {safe_user_name},</p>

            <p>Your suggested change to <strong>{safe_school_name}</strong> has been approved
            and is now live.</p>

            <div class="change">
                <p><strong>{safe_field_label}:</strong> {safe_new_value}</p>
            </div>

            <a href="{school_url}" class="button">View School</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Your edit to {school_name} was approved",
        html_content=_render("Edit Approved", body),
    )


async def send_edit_rejected(
    to_email: str,
    user_name: str,
    school_name: str,
    field_label: str,
    new_value: str,
    reason: str | None = None,
) -> bool:
    """Tell a proposer their edit was not applied."""
    safe_user_name = escape(user_name)
    safe_school_name = escape(school_name)
    safe_field_label = escape(field_label)
    safe_new_value = escape(new_value)

    reason_html = ""
    if reason:
        reason_html = f"<p><strong>Reviewer note:</strong> {escape(reason)}</p>"

    body = f"""
            <p>Hello {safe_user_name},</p>

            <p>Your suggested change to <strong>{safe_school_name}</strong> was reviewed
            and has not been applied.</p>

            <div class="change">
                <p><strong>{safe_field_label}:</strong> {safe_new_value}</p>
            </div>

            {reason_html}

            <p>If you believe this is a mistake, you can submit a new suggestion
            with a source for the information.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Your edit to {school_name} was not approved",
        html_content=_render("Edit Not Approved", body),
    )
