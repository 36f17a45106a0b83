# studio_attendance/core/email.py
import logging
import smtplib
from email.message import EmailMessage

from studio_attendance.core.config import Settings
from studio_attendance.core.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)

RESET_TEXT = """Hello {name},

We received a request to reset the password of your Studio Attendance account.

Open the link below to choose a new password:
{url}

The link is valid for 1 hour. If you did not ask for a reset, ignore this message.
"""

RESET_HTML = """<!DOCTYPE html>
<html><body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
<h1>Password reset</h1>
<p>Hello {name},</p>
<p>We received a request to reset the password of your Studio Attendance account.</p>
<p><a href="{url}">Reset password</a></p>
<p style="word-break: break-all;">{url}</p>
<p><strong>The link is valid for 1 hour.</strong> If you did not ask for a reset, ignore this message.</p>
</body></html>
"""


def build_reset_message(settings: Settings, to: str, token: str, recipient_name: str) -> EmailMessage:
    url = f"{settings.BASE_URL.rstrip('/')}/reset-password?token={token}"
    message = EmailMessage()
    message["Subject"] = "Password reset - Studio Attendance"
    message["From"] = settings.SMTP_FROM
    message["To"] = to
    message.set_content(RESET_TEXT.format(name=recipient_name, url=url))
    message.add_alternative(RESET_HTML.format(name=recipient_name, url=url), subtype="html")
    return message


def send_password_reset_email(settings: Settings, to: str, token: str, recipient_name: str) -> None:
    message = build_reset_message(settings, to, token, recipient_name)

    if not settings.smtp_configured:
        # Development: no SMTP server, the link goes to the log instead.
        text = message.get_body(preferencelist=("plain",)).get_content()
        logger.warning(f"📧 SMTP not configured, password reset message for {to}:\n{text}")
        return

    try:
        if settings.SMTP_SECURE:
            server = smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=15)
        else:
            server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=15)
        with server:
            if not settings.SMTP_SECURE:
                server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASS)
            server.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.exception(f"Error sending password reset email to {to}: {e}")
        raise EmailDeliveryError("Failed to send password reset email") from e

    logger.info(f"📧 Password reset email sent to {to}")
