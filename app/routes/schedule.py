"""CRUD routers for appointments and routine tasks."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.dependencies import current_user_id, get_channels
from app.services.channels import NotificationChannels
from app.services.reminders import send_appointment_confirmation
from app.types.api_schemas import (
    AppointmentCreate,
    AppointmentUpdate,
    RoutineCreate,
    RoutineUpdate,
)
from app.types.reminder_contract import ItemKind, ScheduledItem
import db

appointments_router = APIRouter(prefix="/api/appointments", tags=["appointments"])
routines_router = APIRouter(prefix="/api/routines", tags=["routines"])


# --------------------------------------------
# Appointments
# --------------------------------------------
@appointments_router.get("", response_model=List[ScheduledItem])
async def list_appointments(
    limit: Optional[int] = None, user_id: str = Depends(current_user_id)
):
    return await db.list_items(ItemKind.APPOINTMENT, user_id, limit)


@appointments_router.post("", response_model=ScheduledItem, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    body: AppointmentCreate,
    user_id: str = Depends(current_user_id),
    channels: NotificationChannels = Depends(get_channels),
):
    created = await db.create_item(ItemKind.APPOINTMENT, user_id, body.model_dump())
    await send_appointment_confirmation(db, channels, created)
    return created


@appointments_router.put("/{item_id}", response_model=ScheduledItem)
async def update_appointment(
    item_id: str, body: AppointmentUpdate, user_id: str = Depends(current_user_id)
):
    updated = await db.update_item(
        ItemKind.APPOINTMENT, user_id, item_id, body.model_dump(exclude_unset=True)
    )
    if updated is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "not found")
    return updated


@appointments_router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(item_id: str, user_id: str = Depends(current_user_id)):
    await db.delete_item(ItemKind.APPOINTMENT, user_id, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --------------------------------------------
# Routines
# --------------------------------------------
@routines_router.get("", response_model=List[ScheduledItem])
async def list_routines(user_id: str = Depends(current_user_id)):
    return await db.list_items(ItemKind.ROUTINE, user_id)


@routines_router.post("", response_model=ScheduledItem, status_code=status.HTTP_201_CREATED)
async def create_routine(body: RoutineCreate, user_id: str = Depends(current_user_id)):
    return await db.create_item(ItemKind.ROUTINE, user_id, body.model_dump())


@routines_router.put("/{item_id}", response_model=ScheduledItem)
async def update_routine(
    item_id: str, body: RoutineUpdate, user_id: str = Depends(current_user_id)
):
    updated = await db.update_item(
        ItemKind.ROUTINE, user_id, item_id, body.model_dump(exclude_unset=True)
    )
    if updated is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "not found")
    return updated


@routines_router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_routine(item_id: str, user_id: str = Depends(current_user_id)):
    await db.delete_item(ItemKind.ROUTINE, user_id, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
