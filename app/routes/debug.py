"""Operational endpoints: read-only due check and a raw test SMS send."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_channels
from app.services import reminders
from app.services.channels import NotificationChannels
from app.types.api_schemas import DueCheckReport, SmsTestRequest
from app.types.reminder_contract import ItemKind
import db

router = APIRouter(prefix="/api", tags=["debug"])


@router.post("/reminders/{kind}/check", response_model=DueCheckReport)
async def check_due(kind: ItemKind):
    """Report what the next scan would notify, without notifying anyone."""
    candidates, due = await reminders.preview_due(db, kind)
    return DueCheckReport(
        kind=kind.value,
        candidates=len(candidates),
        to_notify=len(due),
        items=due,
    )


@router.post("/test-sms")
async def test_sms(
    body: SmsTestRequest, channels: NotificationChannels = Depends(get_channels)
):
    if channels.sms is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "SMS is not configured")
    message = body.message or "Test SMS from Sahayata - SMS functionality is working!"
    if not await channels.send_sms(body.phone_number, message):
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, "Failed to send test SMS")
    return {"success": True, "phone_number": body.phone_number, "message": message}
