# rentalcrm/utils/email_utils.py
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from rentalcrm.core.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    """Raised when the SMTP transport fails to hand off a message."""


def send_email(to_email: str, subject: str, html: str):
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = formataddr((settings.MAIL_FROM_NAME, settings.SMTP_USER or ""))
    msg["To"] = to_email
    msg.set_content("This message requires an HTML capable email client.")
    msg.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP_SSL(settings.SMTP_SERVER, settings.SMTP_PORT) as smtp:
            smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("SMTP send failed: %s", e, extra={"email": to_email})
        raise EmailDeliveryError("Failed to send email") from e


def generate_otp_email(otp: str, name: str) -> str:
    return f"""
<html>
  <body style="font-family: Arial, sans-serif;">
    <h2>{settings.MAIL_FROM_NAME}: Email Verification</h2>
    <p>Hello {name},</p>
    <p>Thank you for registering with {settings.MAIL_FROM_NAME}. Use the OTP below to verify your email address:</p>
    <p style="font-size: 28px; font-weight: bold; letter-spacing: 4px;">{otp}</p>
    <p>This OTP will expire in {settings.OTP_EXPIRE_MINUTES} minutes.</p>
    <p>If you didn't create an account with us, please ignore this email.</p>
  </body>
</html>
"""
