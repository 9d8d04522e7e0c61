"""
Email adapter for the Farwell backend.

The default implementation uses SMTP, reading credentials from Settings.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import logging
import smtplib
import ssl

from .config import get_settings

logger = logging.getLogger(__name__)


def send_email(subject: str, to_email: str, html_body: str, text_body: str | None = None) -> bool:
    """
    Send a message with the SMTP credentials configured via env.
    Returns False without sending when SMTP is not configured or delivery fails.
    """
    settings = get_settings()
    if not (
        settings.smtp_host
        and settings.smtp_user
        and settings.smtp_password
        and settings.smtp_from
        and settings.smtp_port
    ):
        logger.warning("SMTP not configured; skipping mail to %s", to_email)
        return False
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.smtp_from
    msg["To"] = to_email
    plain = text_body or html_body
    msg.attach(MIMEText(plain, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    port = settings.smtp_port or 465
    try:
        if port == 465:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(settings.smtp_host, port, context=context) as server:
                server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(settings.smtp_from, [to_email], msg.as_string())
        else:
            with smtplib.SMTP(settings.smtp_host, port) as server:
                server.ehlo()
                server.starttls(context=ssl.create_default_context())
                server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(settings.smtp_from, [to_email], msg.as_string())
        return True
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send mail to %s", to_email)
        return False
