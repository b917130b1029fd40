"""Support groups and their chat rooms."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import current_user_id, get_push
from app.services.push import PushChannel, group_topic, notifications_topic
from app.types.api_schemas import (
    GroupCreate,
    GroupMessageCreate,
    GroupMessageOut,
    GroupSummary,
)
from app.types.reminder_contract import NotificationDraft, SupportGroupRecord
import db

groups_router = APIRouter(prefix="/api/groups", tags=["groups"])
chats_router = APIRouter(prefix="/api/chats", tags=["chats"])


async def _require_complete_profile(user_id: str, action: str) -> None:
    profile = await db.find_profile(user_id)
    if profile is None or not profile.is_profile_complete:
        raise HTTPException(
            status.HTTP_403_FORBIDDEN, f"Complete your profile before {action}"
        )


# --------------------------------------------
# Groups
# --------------------------------------------
@groups_router.get("", response_model=List[GroupSummary])
async def list_groups(user_id: str = Depends(current_user_id)):
    return [
        GroupSummary(
            id=g.id,
            name=g.name,
            description=g.description,
            schedule=g.schedule,
            participants=len(g.members),
            is_member=user_id in g.members,
        )
        for g in await db.list_groups()
    ]


@groups_router.post("", response_model=SupportGroupRecord, status_code=status.HTTP_201_CREATED)
async def create_group(body: GroupCreate, user_id: str = Depends(current_user_id)):
    await _require_complete_profile(user_id, "creating groups")
    if not (body.name.strip() and body.description.strip() and body.schedule.strip()):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "name, description, schedule required")
    return await db.create_group(user_id, body.name.strip(), body.description.strip(), body.schedule.strip())


@groups_router.post("/{group_id}/toggle")
async def toggle_membership(group_id: str, user_id: str = Depends(current_user_id)):
    await _require_complete_profile(user_id, "joining groups")
    members = await db.toggle_group_membership(group_id, user_id)
    if members is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "group not found")
    return {"ok": True, "members": members}


# --------------------------------------------
# Chat
# --------------------------------------------
@chats_router.get("/{group_id}", response_model=List[GroupMessageOut])
async def list_messages(group_id: str, user_id: str = Depends(current_user_id)):
    messages = await db.list_group_messages(group_id)
    profiles = await db.find_profiles(m.user_id for m in messages)
    return [
        GroupMessageOut(**m.model_dump(), user_profile=profiles.get(m.user_id))
        for m in messages
    ]


@chats_router.post("/{group_id}", response_model=GroupMessageOut, status_code=status.HTTP_201_CREATED)
async def post_message(
    group_id: str,
    body: GroupMessageCreate,
    user_id: str = Depends(current_user_id),
    push: PushChannel = Depends(get_push),
):
    text = body.message.strip()
    if not text:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "message required")

    created = await db.insert_group_message(group_id, user_id, text)
    out = GroupMessageOut(**created.model_dump(), user_profile=await db.find_profile(user_id))
    await push.emit(group_topic(group_id), "group-message", out.model_dump(mode="json"))

    # notify the other members
    group = await db.get_group(group_id)
    if group:
        recipients = [m for m in group.members if m != user_id]
        notifications = await db.insert_notifications(
            [
                NotificationDraft(
                    user_id=member,
                    type="chat",
                    title="New group message",
                    message=created.message,
                    data={"group_id": group_id, "message_id": created.id},
                )
                for member in recipients
            ]
        )
        for note in notifications:
            await push.emit(
                notifications_topic(note.user_id), "notification", note.model_dump(mode="json")
            )
    return out
