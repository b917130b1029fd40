"""In-app notification inbox."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import current_user_id, get_channels
from app.services.channels import NotificationChannels
from app.types.api_schemas import NotificationTestAttempts
from app.types.reminder_contract import NotificationRecord
import db

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationRecord])
async def list_notifications(
    limit: int = 50,
    unread_only: bool = False,
    user_id: str = Depends(current_user_id),
):
    return await db.list_notifications(user_id, limit=limit, unread_only=unread_only)


@router.post("/read-all")
async def read_all(user_id: str = Depends(current_user_id)):
    return {"updated": await db.mark_all_notifications_read(user_id)}


@router.post("/{notification_id}/read")
async def read_one(notification_id: str, user_id: str = Depends(current_user_id)):
    if not await db.mark_notification_read(user_id, notification_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "not found")
    return {"ok": True}


@router.post("/test", response_model=NotificationTestAttempts)
async def send_test_notification(
    user_id: str = Depends(current_user_id),
    channels: NotificationChannels = Depends(get_channels),
):
    """Push a test message through the caller's own email/SMS contacts."""
    profile = await db.find_profile(user_id)
    if profile is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "profile not found")
    if not profile.email and not profile.phone_number:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            "No email or phone_number on profile to send test",
        )

    text = "This is a test notification from Sahayata."
    attempts = NotificationTestAttempts()
    if profile.email:
        attempts.email = profile.email
        await channels.send_email(profile.email, "Sahayata Test Notification", text)
    if profile.phone_number:
        attempts.phone_number = profile.phone_number
        await channels.send_sms(profile.phone_number, text)
    return attempts
