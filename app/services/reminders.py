"""
Due-reminder pipeline: scan → window filter → fan-out.

One generic pipeline serves every scheduled-item kind; what differs per
kind (titles, message templates, payload key) lives in a ``ReminderKind``
descriptor.

Fan-out order within a batch is fixed:

1. insert one in-app notification per new item
2. advance those items ``pending -> in_app_sent``
3. push the notifications to ``notifications:{user_id}``
4. email/SMS each item's owner, one item at a time
5. advance the batch ``in_app_sent -> fully_sent``

A crash between 2 and 5 leaves items in ``in_app_sent``. The next scan picks
them up again and runs steps 4 and 5 only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple
from zoneinfo import ZoneInfo

from config import settings
from app.services.channels import NotificationChannels
from app.services.push import PushChannel, notifications_topic
from app.types.reminder_contract import (
    ItemKind,
    NotificationDraft,
    NotificationRecord,
    ReminderStatus,
    ScheduledItem,
    UserProfile,
)

_LOGGER = logging.getLogger(__name__)

# Statuses the scanner still has work for.
OPEN_STATUSES: Tuple[ReminderStatus, ...] = (
    ReminderStatus.PENDING,
    ReminderStatus.IN_APP_SENT,
)


class ReminderStore(Protocol):
    async def find_scheduled_items(
        self, kind: ItemKind, dates: Iterable[str], statuses: Iterable[ReminderStatus]
    ) -> List[ScheduledItem]: ...

    async def update_reminder_status(
        self, kind: ItemKind, ids: Sequence[str], status: ReminderStatus
    ) -> int: ...

    async def insert_notifications(
        self, drafts: Sequence[NotificationDraft]
    ) -> List[NotificationRecord]: ...

    async def find_profile(self, user_id: str) -> Optional[UserProfile]: ...


# ──────────────────────────────────────────────────────────────────────────
# Kind descriptors
# ──────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ReminderKind:
    kind: ItemKind
    notification_title: str
    email_subject: str
    data_key: str
    format_message: Callable[[ScheduledItem], str]
    format_external: Callable[[ScheduledItem], str]

    def draft(self, item: ScheduledItem) -> NotificationDraft:
        return NotificationDraft(
            user_id=item.owner_id,
            type=self.kind.value,
            title=self.notification_title,
            message=self.format_message(item),
            data={self.data_key: item.id},
        )


def _appointment_message(item: ScheduledItem) -> str:
    msg = f"{item.title} at {item.time}"
    if item.location:
        msg += f" ({item.location})"
    return msg


def _appointment_external(item: ScheduledItem) -> str:
    return f"Sahayata Reminder: {_appointment_message(item)} - Don't forget your appointment!"


def _routine_message(item: ScheduledItem) -> str:
    msg = f"{item.title} ({item.category or 'other'}) at {item.time}"
    if item.description:
        msg += f" - {item.description}"
    return msg


APPOINTMENT_REMINDER = ReminderKind(
    kind=ItemKind.APPOINTMENT,
    notification_title="Upcoming appointment",
    email_subject="Upcoming Appointment Reminder",
    data_key="appointment_id",
    format_message=_appointment_message,
    format_external=_appointment_external,
)

ROUTINE_REMINDER = ReminderKind(
    kind=ItemKind.ROUTINE,
    notification_title="Routine Reminder",
    email_subject="Routine Reminder",
    data_key="routine_id",
    format_message=_routine_message,
    format_external=_routine_message,
)

REMINDER_KINDS: Dict[ItemKind, ReminderKind] = {
    d.kind: d for d in (APPOINTMENT_REMINDER, ROUTINE_REMINDER)
}


# ──────────────────────────────────────────────────────────────────────────
# Scanner + window filter
# ──────────────────────────────────────────────────────────────────────────


def reference_timezone() -> tzinfo:
    return ZoneInfo(settings.SCHEDULE_TIMEZONE)


def candidate_dates(now: datetime, tz: tzinfo, window_minutes: int = 60) -> List[str]:
    """ISO dates a due item can fall on: today, and the date ``window_minutes`` ahead."""
    today = now.astimezone(tz).date()
    soon = (now + timedelta(minutes=window_minutes)).astimezone(tz).date()
    return sorted({today.isoformat(), soon.isoformat()})


def scheduled_at(item: ScheduledItem, tz: tzinfo) -> datetime:
    return datetime.combine(
        date.fromisoformat(item.date), time.fromisoformat(item.time), tzinfo=tz
    )


def minutes_until(item: ScheduledItem, now: datetime, tz: tzinfo) -> float:
    return (scheduled_at(item, tz) - now).total_seconds() / 60


def is_due(item: ScheduledItem, now: datetime, tz: tzinfo, window_minutes: int = 60) -> bool:
    """True iff the item starts between now and ``window_minutes`` from now, inclusive."""
    try:
        diff = minutes_until(item, now, tz)
    except ValueError:
        _LOGGER.warning(
            "%s %s has unparseable date/time %r %r; skipping",
            item.kind.value, item.id, item.date, item.time,
        )
        return False
    return 0 <= diff <= window_minutes


def filter_due(
    items: Iterable[ScheduledItem], now: datetime, tz: tzinfo, window_minutes: int = 60
) -> List[ScheduledItem]:
    return [i for i in items if is_due(i, now, tz, window_minutes)]


async def scan_candidates(
    store: ReminderStore, kind: ItemKind, now: datetime, tz: tzinfo, window_minutes: int = 60
) -> List[ScheduledItem]:
    dates = candidate_dates(now, tz, window_minutes)
    return await store.find_scheduled_items(kind, dates, OPEN_STATUSES)


# ──────────────────────────────────────────────────────────────────────────
# Fan-out
# ──────────────────────────────────────────────────────────────────────────


@dataclass
class FanoutResult:
    kind: ItemKind
    notifications: List[NotificationRecord] = field(default_factory=list)
    resumed: int = 0
    emails_sent: int = 0
    sms_sent: int = 0
    skipped_no_profile: int = 0


def contact_phone(item: ScheduledItem, profile: UserProfile) -> Optional[str]:
    # an appointment's own number wins over the profile's
    return item.phone_number or profile.phone_number


async def _send_external(
    store: ReminderStore,
    descriptor: ReminderKind,
    item: ScheduledItem,
    channels: NotificationChannels,
    result: FanoutResult,
) -> None:
    profile = await store.find_profile(item.owner_id)
    if profile is None:
        _LOGGER.info("No profile for user %s; skipping external reminder for %s", item.owner_id, item.id)
        result.skipped_no_profile += 1
        return

    body = descriptor.format_external(item)
    if profile.email:
        if await channels.send_email(profile.email, descriptor.email_subject, body):
            result.emails_sent += 1
    phone = contact_phone(item, profile)
    if phone:
        if await channels.send_sms(phone, body):
            result.sms_sent += 1
    else:
        _LOGGER.debug("No phone number for %s %s", item.kind.value, item.id)


async def fan_out(
    store: ReminderStore,
    descriptor: ReminderKind,
    due: Sequence[ScheduledItem],
    channels: NotificationChannels,
    push: PushChannel,
) -> FanoutResult:
    result = FanoutResult(kind=descriptor.kind)
    fresh = [i for i in due if i.reminder_status is ReminderStatus.PENDING]
    resumed = [i for i in due if i.reminder_status is ReminderStatus.IN_APP_SENT]
    result.resumed = len(resumed)

    if fresh:
        fresh_ids = [i.id for i in fresh]
        result.notifications = await store.insert_notifications(
            [descriptor.draft(i) for i in fresh]
        )
        await store.update_reminder_status(
            descriptor.kind, fresh_ids, ReminderStatus.IN_APP_SENT
        )
        for note in result.notifications:
            try:
                await push.emit(
                    notifications_topic(note.user_id),
                    "notification",
                    note.model_dump(mode="json"),
                )
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Push of notification %s failed", note.id)

    batch = [*fresh, *resumed]
    if not batch:
        return result
    for item in batch:
        await _send_external(store, descriptor, item, channels, result)
    await store.update_reminder_status(
        descriptor.kind, [i.id for i in batch], ReminderStatus.FULLY_SENT
    )
    return result


# ──────────────────────────────────────────────────────────────────────────
# One scan cycle
# ──────────────────────────────────────────────────────────────────────────


@dataclass
class CycleReport:
    kind: ItemKind
    candidates: int
    due: int
    notified: int
    resumed: int


async def preview_due(
    store: ReminderStore,
    kind: ItemKind,
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    window_minutes: Optional[int] = None,
) -> Tuple[List[ScheduledItem], List[ScheduledItem]]:
    """Read-only scan + filter: ``(candidates, due)``."""
    tz = tz or reference_timezone()
    now = now or datetime.now(tz)
    window = window_minutes if window_minutes is not None else settings.REMINDER_WINDOW_MINUTES
    candidates = await scan_candidates(store, kind, now, tz, window)
    return candidates, filter_due(candidates, now, tz, window)


async def run_cycle(
    kind: ItemKind,
    *,
    store: ReminderStore,
    channels: NotificationChannels,
    push: PushChannel,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    window_minutes: Optional[int] = None,
) -> CycleReport:
    descriptor = REMINDER_KINDS[kind]
    candidates, due = await preview_due(
        store, kind, now=now, tz=tz, window_minutes=window_minutes
    )
    _LOGGER.info("%s reminders: %d candidates, %d due", kind.value, len(candidates), len(due))
    result = await fan_out(store, descriptor, due, channels, push)
    report = CycleReport(
        kind=kind,
        candidates=len(candidates),
        due=len(due),
        notified=len(result.notifications),
        resumed=result.resumed,
    )
    if due:
        _LOGGER.info(
            "%s reminders: %d notified, %d resumed, %d emails, %d sms, %d without profile",
            kind.value, report.notified, report.resumed,
            result.emails_sent, result.sms_sent, result.skipped_no_profile,
        )
    return report


# ──────────────────────────────────────────────────────────────────────────
# Creation-time confirmation
# ──────────────────────────────────────────────────────────────────────────


def _confirmation_text(item: ScheduledItem, window_minutes: int) -> str:
    lines = [
        "Appointment Scheduled!",
        "",
        item.title,
        f"{item.date} at {item.time}",
    ]
    if item.location:
        lines.append(item.location)
    lines += [
        "",
        f"You will receive a reminder {window_minutes} minutes before your appointment.",
        "- Sahayata",
    ]
    return "\n".join(lines)


async def send_appointment_confirmation(
    store: ReminderStore, channels: NotificationChannels, item: ScheduledItem
) -> None:
    """Acknowledge a newly created appointment by email/SMS.

    Leaves the reminder status alone and never raises: the appointment exists
    whether or not anyone could be told about it.
    """
    try:
        profile = await store.find_profile(item.owner_id)
        phone = item.phone_number or (profile.phone_number if profile else None)
        body = _confirmation_text(item, settings.REMINDER_WINDOW_MINUTES)
        if profile and profile.email:
            await channels.send_email(profile.email, "Appointment Scheduled", body)
        if phone:
            await channels.send_sms(phone, body)
        else:
            _LOGGER.info("No phone number available for appointment confirmation %s", item.id)
    except Exception:  # noqa: BLE001
        _LOGGER.exception("Failed to send appointment confirmation for %s", item.id)
