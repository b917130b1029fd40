"""External notification channels, bundled so callers get them passed in."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from config import Settings
from app.utils.mailer import SmtpEmailSender
from app.utils.sms import TelnyxSmsSender


class EmailSender(Protocol):
    async def send(self, to: str, subject: str, body: str) -> bool: ...


class SmsSender(Protocol):
    async def send(self, to: str, body: str) -> bool: ...


@dataclass(frozen=True)
class NotificationChannels:
    """Email + SMS senders, each optional.

    A missing sender means that channel is disabled; sends to it are no-ops.
    """

    email: Optional[EmailSender] = None
    sms: Optional[SmsSender] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationChannels":
        email = None
        if settings.SMTP_HOST:
            email = SmtpEmailSender(
                settings.SMTP_HOST,
                settings.SMTP_PORT,
                username=settings.SMTP_USER,
                password=settings.SMTP_PASS,
                from_addr=settings.SMTP_FROM,
                starttls=settings.SMTP_STARTTLS,
                timeout=settings.SMTP_TIMEOUT,
            )
        sms = None
        if settings.TELNYX_API_KEY and settings.TELNYX_FROM_NUMBER:
            sms = TelnyxSmsSender(
                settings.TELNYX_API_KEY,
                settings.TELNYX_FROM_NUMBER,
                default_country_code=settings.SMS_DEFAULT_COUNTRY_CODE,
                timeout=settings.SMS_TIMEOUT,
            )
        return cls(email=email, sms=sms)

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        if self.email is None:
            return False
        return await self.email.send(to, subject, body)

    async def send_sms(self, to: str, body: str) -> bool:
        if self.sms is None:
            return False
        return await self.sms.send(to, body)
