"""Celery application instance shared across the backend.

Start a worker with beat embedded:
    celery -A app.celery_app worker -B -Q reminder -l info --concurrency=2
"""

import logging
import os

from celery import Celery

from config import settings

BROKER_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

logging.basicConfig(level=settings.LOG_LEVEL)

celery_app = Celery("sahayata_backend", broker=BROKER_URL, backend=BROKER_URL)

# Global task settings
celery_app.conf.task_acks_late = True
celery_app.conf.task_reject_on_worker_lost = True

celery_app.conf.task_routes = {
    "app.workers.reminder.scan_due": {"queue": "reminder"},
}

# Beat schedule: one independent entry per scheduled-item kind
celery_app.conf.beat_schedule = {
    "scan-appointment-reminders": {
        "task": "app.workers.reminder.scan_due",
        "schedule": settings.REMINDER_SCAN_INTERVAL_SECONDS,
        "args": ("appointment",),
    },
    "scan-routine-reminders": {
        "task": "app.workers.reminder.scan_due",
        "schedule": settings.REMINDER_SCAN_INTERVAL_SECONDS,
        "args": ("routine",),
    },
}

# --- Ensure tasks are registered ---
import app.workers.reminder  # noqa: E402,F401
