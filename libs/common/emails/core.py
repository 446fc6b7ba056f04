"""
Core email sending utilities over SMTP.
"""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from libs.common.config import Settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


def _build_message(
    sender: str, to_email: str, subject: str, body: str, html_body: Optional[str]
):
    if html_body:
        msg = MIMEMultipart("alternative")
        msg.attach(MIMEText(body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))
    else:
        msg = MIMEText(body, "plain", "utf-8")

    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = to_email
    return msg


def _deliver(settings: Settings, sender_email: str, to_email: str, message) -> None:
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        server.starttls()
        server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.sendmail(sender_email, to_email, message.as_string())


async def send_email(
    settings: Settings,
    to_email: str,
    subject: str,
    body: str,
    html_body: Optional[str] = None,
    from_email: Optional[str] = None,
    from_name: Optional[str] = None,
) -> bool:
    """
    Send an email over SMTP.

    The blocking SMTP conversation runs in a worker thread so the event loop
    keeps serving other requests.

    Args:
        settings: Application settings carrying the SMTP credentials
        to_email: Recipient email address
        subject: Email subject line
        body: Plain text body
        html_body: Optional HTML body (if not provided, plain text is used)
        from_email: Sender email (defaults to DEFAULT_FROM_EMAIL)
        from_name: Sender name (defaults to DEFAULT_FROM_NAME)

    Returns:
        True if email was sent successfully, False otherwise
    """
    if not to_email:
        logger.warning("No recipient for email %r - email not sent", subject)
        return False

    if not settings.SMTP_USERNAME or not settings.SMTP_PASSWORD:
        logger.warning("SMTP credentials not configured - email not sent")
        logger.info("Would have sent email to %s: %s", to_email, subject)
        logger.debug("Email body: %s...", body[:200])
        return False

    sender_email = from_email or settings.DEFAULT_FROM_EMAIL
    sender_name = from_name or settings.DEFAULT_FROM_NAME
    message = _build_message(
        f"{sender_name} <{sender_email}>", to_email, subject, body, html_body
    )

    try:
        logger.info("Sending email to %s: %s", to_email, subject)
        await asyncio.to_thread(_deliver, settings, sender_email, to_email, message)
        logger.info("Email sent successfully to %s", to_email)
        return True

    except smtplib.SMTPAuthenticationError as e:
        logger.error("SMTP authentication failed: %s", e)
        return False
    except (smtplib.SMTPException, OSError) as e:
        logger.error("SMTP error sending email: %s: %s", type(e).__name__, e)
        return False
