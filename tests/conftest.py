from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import db
from app.dependencies import get_channels, get_push
from app.services.channels import NotificationChannels
from app.utils.sms import TelnyxSmsSender
from fakes import IST, InMemoryReminderStore, RecordingEmail, RecordingPush, RecordingTransport


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 10, 19, 9, 0, tzinfo=IST)


@pytest.fixture
def store() -> InMemoryReminderStore:
    return InMemoryReminderStore()


@pytest.fixture
def sms_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def email_sender() -> RecordingEmail:
    return RecordingEmail()


@pytest.fixture
def channels(email_sender, sms_transport) -> NotificationChannels:
    sms = TelnyxSmsSender("KEY_test", "+15550001111", transport=sms_transport)
    return NotificationChannels(email=email_sender, sms=sms)


@pytest.fixture
def push() -> RecordingPush:
    return RecordingPush()


@pytest_asyncio.fixture
async def sqlite_db(tmp_path, monkeypatch):
    """Point the db package at a throwaway SQLite file with the full schema."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.dispose_engine()
    await db.create_all()
    yield db
    await db.dispose_engine()


@pytest_asyncio.fixture
async def client(sqlite_db, channels, push):
    from main import app

    app.dependency_overrides[get_channels] = lambda: channels
    app.dependency_overrides[get_push] = lambda: push
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as async_client:
        yield async_client
    app.dependency_overrides.clear()
