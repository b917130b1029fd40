"""Periodic scanner to send due reminders without a Celery worker.
Run from an external scheduler every five minutes:
    python -m app.scripts.scan_due_reminders [appointment|routine ...]
"""

from __future__ import annotations

import asyncio
import logging
import sys

from app.services import reminders
from app.services.channels import NotificationChannels
from app.services.push import build_push_channel
from app.types.reminder_contract import ItemKind
from config import settings
import db

_LOGGER = logging.getLogger(__name__)


async def main(kinds: list[ItemKind] | None = None) -> int:
    """Run one cycle per kind concurrently; returns how many kinds failed."""
    kinds = kinds or list(ItemKind)
    channels = NotificationChannels.from_settings(settings)
    push = build_push_channel(settings)
    try:
        results = await asyncio.gather(
            *(
                reminders.run_cycle(kind, store=db, channels=channels, push=push)
                for kind in kinds
            ),
            return_exceptions=True,
        )
    finally:
        await push.close()
        await db.dispose_engine()

    failed = 0
    for kind, outcome in zip(kinds, results):
        if isinstance(outcome, BaseException):
            failed += 1
            _LOGGER.error(
                "%s reminder cycle failed", kind.value, exc_info=outcome
            )
    return failed


if __name__ == "__main__":  # pragma: no cover
    logging.basicConfig(level=settings.LOG_LEVEL)
    _LOGGER.info("[CRON] scan_due_reminders: job started")
    selected = [ItemKind(arg) for arg in sys.argv[1:]] or None
    failures = asyncio.run(main(selected))
    if failures:
        _LOGGER.error("[CRON] scan_due_reminders: %d kind(s) failed", failures)
        sys.exit(1)
    _LOGGER.info("[CRON] scan_due_reminders: job completed successfully")
