"""Outbound email over SMTP."""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Callable, Optional

_LOGGER = logging.getLogger(__name__)


class SmtpEmailSender:
    """Plain-text mail over one SMTP relay.

    Like the SMS sender, ``send`` only reports success or failure and never
    raises.
    """

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        from_addr: str = "no-reply@sahayata.local",
        starttls: bool = True,
        timeout: float = 10.0,
        deliver: Optional[Callable[[EmailMessage], None]] = None,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._from_addr = from_addr
        self._starttls = starttls
        self._timeout = timeout
        self._deliver = deliver or self._smtp_deliver

    @property
    def enabled(self) -> bool:
        return bool(self._host)

    def _build(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self._from_addr
        msg["To"] = to
        msg.set_content(body)
        return msg

    def _smtp_deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
            if self._starttls:
                server.starttls()
            if self._username and self._password:
                server.login(self._username, self._password)
            server.send_message(msg)

    async def send(self, to: str, subject: str, body: str) -> bool:
        if not self.enabled:
            _LOGGER.debug("[Email] not configured; would send %r to %s", subject, to)
            return False
        msg = self._build(to, subject, body)
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._deliver, msg), timeout=self._timeout
            )
        except Exception:  # noqa: BLE001
            _LOGGER.exception("[Email] send to %s failed", to)
            return False
        _LOGGER.info("[Email] sent %r to %s", subject, to)
        return True
