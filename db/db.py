"""
Async DB helpers for the care-coordination backend.
Uses SQLAlchemy 2.0 + asyncpg driver – no raw SQL strings in app code.

The reminder pipeline only needs four calls from here
(``find_scheduled_items``, ``update_reminder_status``, ``insert_notifications``,
``find_profile``); the module itself is passed to it as the store.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Iterable, Sequence
from uuid import uuid4

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import (
    create_async_engine, async_sessionmaker, AsyncSession
)

from app.types.reminder_contract import (
    GroupMessageRecord,
    ItemKind,
    MedicalRecordEntry,
    NotificationDraft,
    NotificationRecord,
    ReminderStatus,
    ScheduledItem,
    SupportGroupRecord,
    UserProfile,
)
from .models import (
    Appointment,
    Base,
    GroupMessage,
    MedicalRecord,
    Notification,
    Profile,
    RoutineTask,
    SupportGroup,
)

# ──────────────────────────────────────────────────────────────────────
# 1. Lazy engine / session factory
# ──────────────────────────────────────────────────────────────────────
_engine = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def _build_url() -> str:
    url = os.getenv("DATABASE_URL") or os.getenv("DATABASE_PUBLIC_URL")
    if not url:
        raise RuntimeError("DATABASE_URL not set")
    if url.startswith(("postgres://", "postgresql://")):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1).replace(
            "postgresql://", "postgresql+asyncpg://", 1
        )
    return url


def get_engine():
    global _engine
    if _engine is None:
        url = _build_url()
        if url.startswith("postgresql+asyncpg://"):
            _engine = create_async_engine(url, pool_size=5, max_overflow=5)
        else:
            _engine = create_async_engine(url)
    return _engine


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(get_engine(), expire_on_commit=False)
    async with _session_maker() as session:
        yield session


async def create_all():
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine():
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_maker = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ──────────────────────────────────────────────────────────────────────
# 2. Row ↔ contract mapping
# ──────────────────────────────────────────────────────────────────────
_ITEM_MODELS: dict[ItemKind, type[Appointment] | type[RoutineTask]] = {
    ItemKind.APPOINTMENT: Appointment,
    ItemKind.ROUTINE: RoutineTask,
}


def _to_item(kind: ItemKind, row: Appointment | RoutineTask) -> ScheduledItem:
    return ScheduledItem(
        kind=kind,
        id=row.id,
        owner_id=row.user_id,
        title=row.title,
        date=row.date,
        time=row.time,
        description=row.description,
        reminder_status=ReminderStatus(row.reminder_status),
        location=getattr(row, "location", None),
        phone_number=getattr(row, "phone_number", None),
        category=getattr(row, "category", None),
    )


# ──────────────────────────────────────────────────────────────────────
# 3. Reminder store
# ──────────────────────────────────────────────────────────────────────

# 3.1 Scanner query -----------------------------------------------------
async def find_scheduled_items(
    kind: ItemKind,
    dates: Iterable[str],
    statuses: Iterable[ReminderStatus],
) -> list[ScheduledItem]:
    model = _ITEM_MODELS[kind]
    async with get_session() as s:
        stmt = (
            select(model)
            .where(
                model.date.in_(list(dates)),
                model.reminder_status.in_([st.value for st in statuses]),
            )
            .order_by(model.date, model.time)
        )
        res = await s.execute(stmt)
        return [_to_item(kind, row) for row in res.scalars()]


# 3.2 Status advance ----------------------------------------------------
async def update_reminder_status(
    kind: ItemKind, ids: Sequence[str], status: ReminderStatus
) -> int:
    """Advance ``ids`` to ``status``; rows not in the preceding state are left alone."""
    if not ids:
        return 0
    previous = status.previous
    if previous is None:
        raise ValueError(f"cannot advance reminder status to {status.value!r}")
    model = _ITEM_MODELS[kind]
    async with get_session() as s:
        res = await s.execute(
            update(model)
            .where(
                model.id.in_(list(ids)),
                model.reminder_status == previous.value,
            )
            .values(reminder_status=status.value, updated_at=_utcnow())
            .execution_options(synchronize_session=False)
        )
        await s.commit()
        return res.rowcount or 0


# 3.3 Notifications -----------------------------------------------------
async def insert_notifications(
    drafts: Sequence[NotificationDraft],
) -> list[NotificationRecord]:
    if not drafts:
        return []
    now = _utcnow()
    rows = [
        Notification(id=str(uuid4()), created_at=now, **draft.model_dump())
        for draft in drafts
    ]
    async with get_session() as s:
        s.add_all(rows)
        await s.commit()
    return [NotificationRecord.model_validate(r) for r in rows]


async def list_notifications(
    user_id: str, limit: int = 50, unread_only: bool = False
) -> list[NotificationRecord]:
    async with get_session() as s:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
        res = await s.execute(stmt)
        return [NotificationRecord.model_validate(r) for r in res.scalars()]


async def mark_notification_read(user_id: str, notification_id: str) -> bool:
    async with get_session() as s:
        res = await s.execute(
            update(Notification)
            .where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        await s.commit()
        return bool(res.rowcount)


async def mark_all_notifications_read(user_id: str) -> int:
    async with get_session() as s:
        res = await s.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        await s.commit()
        return res.rowcount or 0


# 3.4 Profiles ----------------------------------------------------------
_REQUIRED_PROFILE_FIELDS = frozenset({"email", "role", "is_profile_complete"})


async def find_profile(user_id: str) -> UserProfile | None:
    async with get_session() as s:
        row = await s.get(Profile, user_id)
        return UserProfile.model_validate(row) if row else None


async def upsert_profile(user_id: str, fields: dict[str, Any]) -> UserProfile:
    """Update the profile's given fields, creating the row if needed.

    Raises ``ValueError`` when creating a profile without an email.
    """
    fields = {
        k: v for k, v in fields.items()
        if v is not None or k not in _REQUIRED_PROFILE_FIELDS
    }
    async with get_session() as s:
        row = await s.get(Profile, user_id)
        if row is None:
            if not fields.get("email"):
                raise ValueError("email is required to create a profile")
            now = _utcnow()
            row = Profile(
                user_id=user_id,
                **{
                    "full_name": None,
                    "phone_number": None,
                    "role": "caretaker",
                    "is_profile_complete": False,
                    **fields,
                },
                created_at=now,
                updated_at=now,
            )
            s.add(row)
        else:
            for key, value in fields.items():
                setattr(row, key, value)
            row.updated_at = _utcnow()
        await s.commit()
        return UserProfile.model_validate(row)


# ──────────────────────────────────────────────────────────────────────
# 4. Scheduled item CRUD
# ──────────────────────────────────────────────────────────────────────
_RESCHEDULE_FIELDS = frozenset({"date", "time"})
_REQUIRED_ITEM_FIELDS = frozenset({"title", "date", "time", "category"})


async def list_items(
    kind: ItemKind, user_id: str, limit: int | None = None
) -> list[ScheduledItem]:
    model = _ITEM_MODELS[kind]
    async with get_session() as s:
        stmt = (
            select(model)
            .where(model.user_id == user_id)
            .order_by(model.date, model.time)
        )
        if limit:
            stmt = stmt.limit(limit)
        res = await s.execute(stmt)
        return [_to_item(kind, row) for row in res.scalars()]


async def create_item(kind: ItemKind, user_id: str, fields: dict[str, Any]) -> ScheduledItem:
    model = _ITEM_MODELS[kind]
    now = _utcnow()
    row = model(
        id=str(uuid4()),
        user_id=user_id,
        reminder_status=ReminderStatus.PENDING.value,
        created_at=now,
        updated_at=now,
        **fields,
    )
    async with get_session() as s:
        s.add(row)
        await s.commit()
    return _to_item(kind, row)


async def update_item(
    kind: ItemKind, user_id: str, item_id: str, fields: dict[str, Any]
) -> ScheduledItem | None:
    """Apply ``fields`` to the caller's item.

    Moving the date or time re-arms the reminder: status goes back to
    ``pending`` so the new slot is notified.
    """
    fields = {
        k: v for k, v in fields.items()
        if v is not None or k not in _REQUIRED_ITEM_FIELDS
    }
    model = _ITEM_MODELS[kind]
    async with get_session() as s:
        res = await s.execute(
            select(model).where(model.id == item_id, model.user_id == user_id)
        )
        row = res.scalar_one_or_none()
        if row is None:
            return None
        rescheduled = any(
            key in _RESCHEDULE_FIELDS and getattr(row, key) != value
            for key, value in fields.items()
        )
        for key, value in fields.items():
            setattr(row, key, value)
        if rescheduled:
            row.reminder_status = ReminderStatus.PENDING.value
        row.updated_at = _utcnow()
        await s.commit()
        return _to_item(kind, row)


async def delete_item(kind: ItemKind, user_id: str, item_id: str) -> bool:
    model = _ITEM_MODELS[kind]
    async with get_session() as s:
        res = await s.execute(
            select(model).where(model.id == item_id, model.user_id == user_id)
        )
        row = res.scalar_one_or_none()
        if row is None:
            return False
        await s.delete(row)
        await s.commit()
        return True


# ──────────────────────────────────────────────────────────────────────
# 5. Support groups & chat
# ──────────────────────────────────────────────────────────────────────
async def list_groups() -> list[SupportGroupRecord]:
    async with get_session() as s:
        res = await s.execute(select(SupportGroup).order_by(SupportGroup.created_at))
        return [SupportGroupRecord.model_validate(g) for g in res.scalars()]


async def get_group(group_id: str) -> SupportGroupRecord | None:
    async with get_session() as s:
        row = await s.get(SupportGroup, group_id)
        return SupportGroupRecord.model_validate(row) if row else None


async def create_group(
    created_by: str, name: str, description: str, schedule: str
) -> SupportGroupRecord:
    row = SupportGroup(
        id=str(uuid4()),
        name=name,
        description=description,
        schedule=schedule,
        created_by=created_by,
        members=[],
        created_at=_utcnow(),
    )
    async with get_session() as s:
        s.add(row)
        await s.commit()
    return SupportGroupRecord.model_validate(row)


async def toggle_group_membership(group_id: str, user_id: str) -> list[str] | None:
    """Join the group if not a member, leave it otherwise. ``None`` if no such group."""
    async with get_session() as s:
        row = await s.get(SupportGroup, group_id)
        if row is None:
            return None
        members = list(row.members or [])
        if user_id in members:
            members.remove(user_id)
        else:
            members.append(user_id)
        # reassign so the JSON column is flagged dirty
        row.members = members
        await s.commit()
        return members


async def list_group_messages(group_id: str) -> list[GroupMessageRecord]:
    async with get_session() as s:
        res = await s.execute(
            select(GroupMessage)
            .where(GroupMessage.group_id == group_id)
            .order_by(GroupMessage.created_at)
        )
        return [GroupMessageRecord.model_validate(m) for m in res.scalars()]


async def insert_group_message(group_id: str, user_id: str, message: str) -> GroupMessageRecord:
    row = GroupMessage(
        id=str(uuid4()),
        group_id=group_id, user_id=user_id, message=message, created_at=_utcnow()
    )
    async with get_session() as s:
        s.add(row)
        await s.commit()
    return GroupMessageRecord.model_validate(row)


async def find_profiles(user_ids: Iterable[str]) -> dict[str, UserProfile]:
    ids = list(set(user_ids))
    if not ids:
        return {}
    async with get_session() as s:
        res = await s.execute(select(Profile).where(Profile.user_id.in_(ids)))
        return {p.user_id: UserProfile.model_validate(p) for p in res.scalars()}


# ──────────────────────────────────────────────────────────────────────
# 6. Medical records
# ──────────────────────────────────────────────────────────────────────
_REQUIRED_RECORD_FIELDS = frozenset({"date", "type", "description"})


async def list_medical_records(user_id: str) -> list[MedicalRecordEntry]:
    """Newest first: by record date, then by creation time."""
    async with get_session() as s:
        res = await s.execute(
            select(MedicalRecord)
            .where(MedicalRecord.user_id == user_id)
            .order_by(MedicalRecord.date.desc(), MedicalRecord.created_at.desc())
        )
        return [MedicalRecordEntry.model_validate(r) for r in res.scalars()]


async def create_medical_record(user_id: str, fields: dict[str, Any]) -> MedicalRecordEntry:
    now = _utcnow()
    row = MedicalRecord(
        id=str(uuid4()),
        user_id=user_id,
        **{"attachment_name": None, **fields},
        created_at=now,
        updated_at=now,
    )
    async with get_session() as s:
        s.add(row)
        await s.commit()
    return MedicalRecordEntry.model_validate(row)


async def update_medical_record(
    user_id: str, record_id: str, fields: dict[str, Any]
) -> MedicalRecordEntry | None:
    fields = {
        k: v for k, v in fields.items()
        if v is not None or k not in _REQUIRED_RECORD_FIELDS
    }
    async with get_session() as s:
        res = await s.execute(
            select(MedicalRecord).where(
                MedicalRecord.id == record_id, MedicalRecord.user_id == user_id
            )
        )
        row = res.scalar_one_or_none()
        if row is None:
            return None
        for key, value in fields.items():
            setattr(row, key, value)
        row.updated_at = _utcnow()
        await s.commit()
        return MedicalRecordEntry.model_validate(row)


async def delete_medical_record(user_id: str, record_id: str) -> bool:
    async with get_session() as s:
        res = await s.execute(
            select(MedicalRecord).where(
                MedicalRecord.id == record_id, MedicalRecord.user_id == user_id
            )
        )
        row = res.scalar_one_or_none()
        if row is None:
            return False
        await s.delete(row)
        await s.commit()
        return True
