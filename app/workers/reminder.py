"""Celery task that runs one due-reminder cycle for a scheduled-item kind."""

from __future__ import annotations

import asyncio
import logging

from app.celery_app import celery_app
from app.services import reminders
from app.services.channels import NotificationChannels
from app.services.push import build_push_channel
from app.types.reminder_contract import ItemKind
from config import settings
import db

_LOGGER = logging.getLogger(__name__)


async def _scan_kind(kind: ItemKind) -> reminders.CycleReport:
    channels = NotificationChannels.from_settings(settings)
    push = build_push_channel(settings)
    try:
        return await reminders.run_cycle(kind, store=db, channels=channels, push=push)
    finally:
        await push.close()
        # each task run gets a fresh event loop; pooled connections must not outlive it
        await db.dispose_engine()


# ---------------------------------------------------------------------------
# Celery Tasks
# ---------------------------------------------------------------------------

@celery_app.task(name="app.workers.reminder.scan_due", bind=True)
def scan_due(self, kind: str) -> dict:  # noqa: D401
    """Scan, filter and fan out due reminders for one kind.

    A storage failure fails this run only; the next beat tick starts over and
    the status column keeps the retry idempotent.
    """
    item_kind = ItemKind(kind)
    try:
        report = asyncio.run(_scan_kind(item_kind))
    except Exception:
        _LOGGER.exception("%s reminder cycle failed", item_kind.value)
        raise
    return {
        "kind": report.kind.value,
        "candidates": report.candidates,
        "due": report.due,
        "notified": report.notified,
        "resumed": report.resumed,
    }
