"""Request/response bodies for the HTTP API."""

from __future__ import annotations

from datetime import date as _date, time as _time
from typing import List, Optional

from pydantic import BaseModel, field_validator

from app.types.reminder_contract import (
    GroupMessageRecord,
    ProfileRole,
    RoutineCategory,
    ScheduledItem,
    UserProfile,
)


def _check_date(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    # fromisoformat also takes week dates and compact forms; only the
    # canonical spelling matches the scanner's string comparison
    try:
        canonical = _date.fromisoformat(v).isoformat()
    except ValueError:
        canonical = None
    if canonical != v:
        raise ValueError("date must be YYYY-MM-DD")
    return v


def _check_time(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    try:
        canonical = _time.fromisoformat(v).strftime("%H:%M")
    except ValueError:
        canonical = None
    if canonical != v:
        raise ValueError("time must be HH:MM (24h)")
    return v


class _ItemFields(BaseModel):
    @field_validator("title", check_fields=False)
    def _title_not_blank(cls, v):  # noqa: N805
        if v is not None and not v.strip():
            raise ValueError("title must not be blank")
        return v.strip() if v is not None else v

    @field_validator("date", check_fields=False)
    def _valid_date(cls, v):  # noqa: N805
        return _check_date(v)

    @field_validator("time", check_fields=False)
    def _valid_time(cls, v):  # noqa: N805
        return _check_time(v)


class AppointmentCreate(_ItemFields):
    title: str
    date: str
    time: str
    description: Optional[str] = None
    location: Optional[str] = None
    phone_number: Optional[str] = None


class AppointmentUpdate(_ItemFields):
    title: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    phone_number: Optional[str] = None


class RoutineCreate(_ItemFields):
    title: str
    date: str
    time: str
    description: Optional[str] = None
    category: RoutineCategory = "other"


class RoutineUpdate(_ItemFields):
    title: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    description: Optional[str] = None
    category: Optional[RoutineCategory] = None


class _RecordFields(BaseModel):
    @field_validator("date", check_fields=False)
    def _valid_date(cls, v):  # noqa: N805
        return _check_date(v)

    @field_validator("type", "description", check_fields=False)
    def _not_blank(cls, v):  # noqa: N805
        if v is not None and not v.strip():
            raise ValueError("must not be blank")
        return v.strip() if v is not None else v


class MedicalRecordCreate(_RecordFields):
    date: str
    type: str
    description: str
    attachment_name: Optional[str] = None


class MedicalRecordUpdate(_RecordFields):
    date: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    attachment_name: Optional[str] = None


class ProfileUpdate(BaseModel):
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[ProfileRole] = None
    phone_number: Optional[str] = None
    is_profile_complete: Optional[bool] = None


class GroupCreate(BaseModel):
    name: str
    description: str
    schedule: str


class GroupSummary(BaseModel):
    id: str
    name: str
    description: str
    schedule: str
    participants: int
    is_member: bool


class GroupMessageCreate(BaseModel):
    message: str


class GroupMessageOut(GroupMessageRecord):
    user_profile: Optional[UserProfile] = None


class SmsTestRequest(BaseModel):
    phone_number: str
    message: Optional[str] = None


class DueCheckReport(BaseModel):
    success: bool = True
    kind: str
    candidates: int
    to_notify: int
    items: List[ScheduledItem]


class NotificationTestAttempts(BaseModel):
    ok: bool = True
    email: Optional[str] = None
    phone_number: Optional[str] = None


__all__ = [
    "AppointmentCreate",
    "AppointmentUpdate",
    "RoutineCreate",
    "RoutineUpdate",
    "MedicalRecordCreate",
    "MedicalRecordUpdate",
    "ProfileUpdate",
    "GroupCreate",
    "GroupSummary",
    "GroupMessageCreate",
    "GroupMessageOut",
    "SmsTestRequest",
    "DueCheckReport",
    "NotificationTestAttempts",
    "UserProfile",
]
