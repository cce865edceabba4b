"""Outgoing mail for one-time codes."""

import logging
from email.message import EmailMessage

import aiosmtplib

from app.config import Settings, get_settings
from app.errors import MailDeliveryError

logger = logging.getLogger("eventpass")

OTP_SUBJECT = "Passwordless Authentication"


class Mailer:
    """Sends mail through an SMTP relay.

    Owned by whoever constructs it; routes receive it through the
    ``get_mailer`` dependency so tests can substitute their own.
    """

    def __init__(self, settings: Settings) -> None:
        self.hostname = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USER or None
        self.password = settings.SMTP_PASSWORD or None
        self.start_tls = settings.SMTP_START_TLS
        self.timeout = settings.SMTP_TIMEOUT
        self.sender = settings.MAIL_SENDER
        self.reply_to = settings.MAIL_REPLY_TO

    def build_otp_message(self, to_email: str, code: str, expire_minutes: int) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to_email
        if self.reply_to:
            message["Reply-To"] = self.reply_to
        message["Subject"] = OTP_SUBJECT
        message.set_content(f"This is your one time code\n{code}\nCode expires in {expire_minutes} minutes")
        return message

    async def send(self, message: EmailMessage) -> None:
        """Deliver a message. Raises MailDeliveryError on any transport failure."""
        if not self.hostname:
            raise MailDeliveryError("Mail transport is not configured.")

        smtp_client = aiosmtplib.SMTP(
            hostname=self.hostname,
            port=self.port,
            username=self.username,
            password=self.password,
            use_tls=False,
            start_tls=self.start_tls,
            timeout=self.timeout,
        )
        try:
            async with smtp_client:
                await smtp_client.send_message(message)
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery to %s failed: %s", message["To"], e)
            raise MailDeliveryError() from e

    async def send_otp(self, to_email: str, code: str, expire_minutes: int) -> None:
        """Email a one-time code to its owner."""
        await self.send(self.build_otp_message(to_email, code, expire_minutes))
        logger.info("One-time code dispatched to %s", to_email)


_mailer: Mailer | None = None


def get_mailer() -> Mailer:
    """FastAPI dependency returning the process-wide mailer."""
    global _mailer
    if _mailer is None:
        _mailer = Mailer(get_settings())
    return _mailer
