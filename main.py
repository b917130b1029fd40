import logging

from fastapi import FastAPI

import db
from app.dependencies import get_push
from app.routes import (
    debug,
    groups,
    medical_records,
    notifications,
    profiles,
    realtime,
    schedule,
)
from config import settings

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(title="Sahayata API")

app.include_router(profiles.router)
app.include_router(schedule.appointments_router)
app.include_router(schedule.routines_router)
app.include_router(medical_records.router)
app.include_router(notifications.router)
app.include_router(groups.groups_router)
app.include_router(groups.chats_router)
app.include_router(debug.router)
app.include_router(realtime.router)


@app.on_event("shutdown")
async def shutdown_event():
    await get_push().close()
    await db.dispose_engine()


@app.get("/health")
async def health():
    return {"ok": True}
