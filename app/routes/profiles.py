from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import current_user_id
from app.types.api_schemas import ProfileUpdate
from app.types.reminder_contract import UserProfile
import db

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.get("", response_model=UserProfile)
async def get_profile(user_id: str = Depends(current_user_id)):
    profile = await db.find_profile(user_id)
    if profile is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "profile not found")
    return profile


@router.put("", response_model=UserProfile)
async def put_profile(body: ProfileUpdate, user_id: str = Depends(current_user_id)):
    try:
        return await db.upsert_profile(user_id, body.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc))
