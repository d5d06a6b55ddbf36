import logging
import html as html_lib
from typing import Any, Dict

from aiosmtplib import SMTPException
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from fastapi_mail.errors import ConnectionErrors

import config

logger = logging.getLogger(__name__)


def mail_config() -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=config.EMAIL_USER,
        MAIL_PASSWORD=config.EMAIL_PASS,
        MAIL_FROM=config.EMAIL_FROM or config.EMAIL_USER,
        MAIL_FROM_NAME=config.EMAIL_FROM_NAME,
        MAIL_SERVER=config.SMTP_HOST,
        MAIL_PORT=config.SMTP_PORT,
        MAIL_STARTTLS=config.MAIL_STARTTLS,
        MAIL_SSL_TLS=config.MAIL_SSL_TLS,
        USE_CREDENTIALS=True,
        SUPPRESS_SEND=config.MAIL_SUPPRESS_SEND,
        TIMEOUT=10,
    )


def get_mailer() -> FastMail:
    return FastMail(mail_config())


async def send_email(to: str, subject: str, body: str, subtype: MessageType = MessageType.plain) -> bool:
    """Send one message. Returns False instead of raising: mail never fails a request."""
    if not config.EMAIL_USER:
        logger.info("Mail not configured, skipping '%s' to %s", subject, to)
        return False

    message = MessageSchema(subject=subject, recipients=[to], body=body, subtype=subtype)
    try:
        await get_mailer().send_message(message)
    except (ConnectionErrors, SMTPException, OSError):
        logger.exception("Failed to send '%s' to %s", subject, to)
        return False
    logger.info("Sent '%s' to %s", subject, to)
    return True


async def send_welcome_email(user: Dict[str, Any]) -> bool:
    name = html_lib.escape(user.get("name", ""))
    login_url = f"{config.FRONTEND_URL}/login"
    html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
      <h1 style="color: #1E3A8A;">Welcome to Perundurai Rentals!</h1>
      <p>Hello {name},</p>
      <p>Thank you for registering with Perundurai Rentals!</p>
      <p>We're excited to have you on board. You can now log in to your account and start exploring our properties.</p>
      <p><a href="{login_url}">Log In to Your Account</a></p>
      <p style="color: #6b7280; font-size: 14px;">Perundurai Rentals - Your Trusted Rental Partner</p>
    </div>
    """
    return await send_email(user["email"], "Welcome to Perundurai Rentals!", html, MessageType.html)
