"""Outbound SMS via Telnyx.

``TelnyxSmsSender.send`` never raises: a missing configuration turns it into a
logged no-op and provider errors are logged and dropped.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Callable, Optional

import telnyx

_LOGGER = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: str, default_country_code: str = "91") -> str:
    """Best-effort E.164 form of ``raw``.

    Only a bare 10-digit local number gets the default country code; anything
    else keeps its digits as given. There is no validation step.
    """
    digits = _NON_DIGITS.sub("", raw)
    if not raw.startswith("+") and len(digits) == 10:
        digits = default_country_code + digits
    return "+" + digits


def _telnyx_transport(api_key: str, from_number: str, to: str, body: str) -> Any:
    return telnyx.Message.create(api_key=api_key, from_=from_number, to=to, text=body)


class TelnyxSmsSender:
    def __init__(
        self,
        api_key: Optional[str],
        from_number: Optional[str],
        *,
        default_country_code: str = "91",
        timeout: float = 10.0,
        transport: Callable[[str, str, str, str], Any] = _telnyx_transport,
    ) -> None:
        self._api_key = api_key
        self._from_number = from_number
        self._default_country_code = default_country_code
        self._timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._api_key and self._from_number)

    async def send(self, to: str, body: str) -> bool:
        """Send ``body`` to ``to``; returns whether the provider accepted it."""
        if not self.enabled:
            _LOGGER.debug("[SMS] not configured; would send to %s: %s", to, body)
            return False
        formatted = normalize_phone(to, self._default_country_code)
        _LOGGER.debug("[SMS] formatted phone %s -> %s", to, formatted)
        try:
            await asyncio.wait_for(
                asyncio.to_thread(
                    self._transport, self._api_key, self._from_number, formatted, body
                ),
                timeout=self._timeout,
            )
        except Exception:  # noqa: BLE001
            _LOGGER.exception("[SMS] send to %s failed", formatted)
            return False
        _LOGGER.info("[SMS] sent to %s", formatted)
        return True
