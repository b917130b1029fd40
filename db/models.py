from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.types.reminder_contract import ReminderStatus


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class _ScheduledItemColumns:
    """Columns shared by every kind the reminder scanner visits."""

    id:              Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id:         Mapped[str] = mapped_column(index=True)
    title:           Mapped[str]
    description:     Mapped[str | None]
    date:            Mapped[str] = mapped_column(String(10))  # YYYY-MM-DD
    time:            Mapped[str] = mapped_column(String(5))   # HH:MM
    reminder_status: Mapped[str] = mapped_column(
        String(16), default=ReminderStatus.PENDING.value
    )
    created_at:      Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at:      Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class Appointment(_ScheduledItemColumns, Base):
    __tablename__ = "appointments"

    location:     Mapped[str | None]
    phone_number: Mapped[str | None]

    __table_args__ = (
        Index("ix_appointments_date_status", "date", "reminder_status"),
    )


class RoutineTask(_ScheduledItemColumns, Base):
    __tablename__ = "routine_tasks"

    category: Mapped[str] = mapped_column(String(16), default="other")

    __table_args__ = (
        Index("ix_routine_tasks_date_status", "date", "reminder_status"),
    )


class Profile(Base):
    __tablename__ = "profiles"

    user_id:             Mapped[str] = mapped_column(primary_key=True)
    email:               Mapped[str]
    full_name:           Mapped[str | None]
    role:                Mapped[str] = mapped_column(default="caretaker")
    phone_number:        Mapped[str | None]
    is_profile_complete: Mapped[bool] = mapped_column(default=False)
    created_at:          Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at:          Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class Notification(Base):
    __tablename__ = "notifications"

    id:         Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id:    Mapped[str] = mapped_column(index=True)
    type:       Mapped[str] = mapped_column(String(16))
    title:      Mapped[str]
    message:    Mapped[str]
    data:       Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    read:       Mapped[bool] = mapped_column(default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class SupportGroup(Base):
    __tablename__ = "support_groups"

    id:          Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name:        Mapped[str]
    description: Mapped[str]
    schedule:    Mapped[str]
    created_by:  Mapped[str]
    members:     Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at:  Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class GroupMessage(Base):
    __tablename__ = "group_messages"

    id:         Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    group_id:   Mapped[str] = mapped_column(String(36), index=True)
    user_id:    Mapped[str]
    message:    Mapped[str]
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class MedicalRecord(Base):
    __tablename__ = "medical_records"

    id:              Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id:         Mapped[str] = mapped_column(index=True)
    date:            Mapped[str] = mapped_column(String(10))  # YYYY-MM-DD
    type:            Mapped[str]
    description:     Mapped[str]
    attachment_name: Mapped[str | None]
    created_at:      Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at:      Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
