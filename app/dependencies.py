"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException, status

from app.services.channels import NotificationChannels
from app.services.push import PushChannel, build_push_channel
from config import settings


async def current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity, as established by the auth layer in front of this API."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "missing user identity")
    return x_user_id.strip()


@lru_cache(maxsize=1)
def get_channels() -> NotificationChannels:
    return NotificationChannels.from_settings(settings)


@lru_cache(maxsize=1)
def get_push() -> PushChannel:
    return build_push_channel(settings)
