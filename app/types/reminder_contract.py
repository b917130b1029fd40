"""Pydantic models that define the contract between the reminder pipeline,
the storage layer and the API.

They carry no ORM or FastAPI imports so workers, routes and tests can share
them without dragging in a database session.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ItemKind(str, Enum):
    """Kinds of scheduled item the reminder pipeline knows about."""

    APPOINTMENT = "appointment"
    ROUTINE = "routine"


class ReminderStatus(str, Enum):
    """Delivery state of a scheduled item's due-reminder.

    Only ever advances ``pending -> in_app_sent -> fully_sent``; an item in
    ``in_app_sent`` still owes its external (email/SMS) attempt.
    """

    PENDING = "pending"
    IN_APP_SENT = "in_app_sent"
    FULLY_SENT = "fully_sent"

    @property
    def previous(self) -> Optional["ReminderStatus"]:
        order = list(ReminderStatus)
        idx = order.index(self)
        return order[idx - 1] if idx else None


RoutineCategory = Literal["medication", "exercise", "meal", "other"]
NotificationType = Literal["appointment", "routine", "chat"]
ProfileRole = Literal["caretaker", "patient"]


class ScheduledItem(BaseModel):
    """An appointment or routine task as seen by the reminder pipeline."""

    model_config = ConfigDict(from_attributes=True)

    kind: ItemKind
    id: str
    owner_id: str
    title: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM, 24h
    description: Optional[str] = None
    reminder_status: ReminderStatus = ReminderStatus.PENDING

    # appointment-only
    location: Optional[str] = None
    phone_number: Optional[str] = None

    # routine-only
    category: Optional[RoutineCategory] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def reminder_sent(self) -> bool:
        return self.reminder_status is not ReminderStatus.PENDING

    @computed_field  # type: ignore[prop-decorator]
    @property
    def external_reminder_sent(self) -> bool:
        return self.reminder_status is ReminderStatus.FULLY_SENT


class UserProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    email: str
    full_name: Optional[str] = None
    role: ProfileRole = "caretaker"
    phone_number: Optional[str] = None
    is_profile_complete: bool = False


class NotificationDraft(BaseModel):
    """A notification about to be persisted (no id yet)."""

    user_id: str
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
    read: bool = False


class NotificationRecord(NotificationDraft):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: Optional[datetime] = None


class SupportGroupRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    schedule: str
    created_by: str
    members: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class GroupMessageRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    group_id: str
    user_id: str
    message: str
    created_at: Optional[datetime] = None


class MedicalRecordEntry(BaseModel):
    """A dated health-history entry kept for the profile owner."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    date: str  # YYYY-MM-DD
    type: str
    description: str
    attachment_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
