"""Email delivery for pod health digests.

SMTP with STARTTLS via stdlib smtplib.  Delivery is best-effort: a failed
send is logged and reported as False, and the triage run carries on.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from podtriage.config import get_settings

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30


def is_email_configured() -> bool:
    """True when host, credentials and a recipient are all set."""
    settings = get_settings()
    required = (settings.smtp_host, settings.smtp_username, settings.smtp_password, settings.report_recipient_email)
    return all(required)


def _build_message(body: str, subject: str) -> EmailMessage:
    settings = get_settings()
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.email_from or settings.smtp_username
    msg["To"] = settings.report_recipient_email
    msg.set_content(body)
    return msg


def send_report_email(body: str, subject: str | None = None) -> bool:
    """Email the digest to the configured recipient.

    Args:
        body: Plain-text digest.
        subject: Subject line; the configured report subject when omitted.

    Returns:
        Whether the message was handed to the SMTP server.
    """
    if not is_email_configured():
        logger.warning("SMTP settings incomplete, not sending the report email")
        return False

    settings = get_settings()
    msg = _build_message(body, subject or settings.report_subject)
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=SMTP_TIMEOUT_SECONDS) as server:
            _ = server.starttls()
            server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(msg)
    except Exception:
        logger.exception("Could not deliver report email via %s", settings.smtp_host)
        return False

    logger.info("Report emailed to %s", settings.report_recipient_email)
    return True


async def notify(subject: str, body: str) -> bool:
    """Async wrapper around send_report_email; SMTP runs in a worker thread."""
    return await asyncio.to_thread(send_report_email, body, subject)
