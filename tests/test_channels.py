import asyncio
import time

import pytest

from app.services.channels import NotificationChannels
from app.services.push import LocalPushChannel, build_push_channel, group_topic
from app.utils.mailer import SmtpEmailSender
from app.utils.sms import TelnyxSmsSender
from config import Settings
from fakes import RecordingTransport


@pytest.mark.asyncio
async def test_sms_without_credentials_is_a_noop():
    transport = RecordingTransport()
    sender = TelnyxSmsSender(None, "+15550001111", transport=transport)

    assert sender.enabled is False
    assert await sender.send("9876543210", "hi") is False
    assert transport.calls == []


@pytest.mark.asyncio
async def test_sms_sends_normalized_number():
    transport = RecordingTransport()
    sender = TelnyxSmsSender("KEY_test", "+15550001111", transport=transport)

    assert await sender.send("(987) 654-3210", "Checkup at 09:30") is True
    assert transport.calls == [("+919876543210", "Checkup at 09:30")]


@pytest.mark.asyncio
async def test_sms_provider_error_is_reported_not_raised():
    sender = TelnyxSmsSender(
        "KEY_test", "+15550001111", transport=RecordingTransport(fail_on={1})
    )

    assert await sender.send("9876543210", "hi") is False


@pytest.mark.asyncio
async def test_sms_times_out():
    def slow(*_args):
        time.sleep(0.5)

    sender = TelnyxSmsSender("KEY_test", "+15550001111", timeout=0.05, transport=slow)

    assert await sender.send("9876543210", "hi") is False


@pytest.mark.asyncio
async def test_email_builds_message_for_deliver_hook():
    delivered = []
    sender = SmtpEmailSender(
        "smtp.test", from_addr="care@sahayata.test", deliver=delivered.append
    )

    assert await sender.send("a@x.com", "Upcoming Appointment Reminder", "Checkup at 09:30") is True
    [msg] = delivered
    assert msg["To"] == "a@x.com"
    assert msg["From"] == "care@sahayata.test"
    assert msg["Subject"] == "Upcoming Appointment Reminder"
    assert msg.get_content().strip() == "Checkup at 09:30"


@pytest.mark.asyncio
async def test_email_failure_is_swallowed():
    def refuse(_msg):
        raise ConnectionRefusedError("smtp down")

    sender = SmtpEmailSender("smtp.test", deliver=refuse)

    assert await sender.send("a@x.com", "s", "b") is False


@pytest.mark.asyncio
async def test_email_without_host_is_a_noop():
    delivered = []
    sender = SmtpEmailSender(None, deliver=delivered.append)

    assert await sender.send("a@x.com", "s", "b") is False
    assert delivered == []


@pytest.mark.asyncio
async def test_channels_from_empty_settings_are_disabled():
    settings = Settings()
    settings.SMTP_HOST = None
    settings.TELNYX_API_KEY = None

    channels = NotificationChannels.from_settings(settings)

    assert channels.email is None and channels.sms is None
    assert await channels.send_email("a@x.com", "s", "b") is False
    assert await channels.send_sms("9876543210", "b") is False


def test_channels_from_settings_builds_senders():
    settings = Settings()
    settings.SMTP_HOST = "smtp.test"
    settings.TELNYX_API_KEY = "KEY_test"
    settings.TELNYX_FROM_NUMBER = "+15550001111"

    channels = NotificationChannels.from_settings(settings)

    assert isinstance(channels.email, SmtpEmailSender) and channels.email.enabled
    assert isinstance(channels.sms, TelnyxSmsSender) and channels.sms.enabled


def test_push_falls_back_to_local_without_redis():
    settings = Settings()
    settings.REDIS_URL = None

    assert isinstance(build_push_channel(settings), LocalPushChannel)


@pytest.mark.asyncio
async def test_local_push_drops_events_without_subscribers():
    push = LocalPushChannel()

    await push.emit(group_topic("g1"), "group-message", {"id": "m1"})

    assert push.subscriber_count(group_topic("g1")) == 0


@pytest.mark.asyncio
async def test_local_push_fans_out_to_every_subscriber():
    push = LocalPushChannel()
    topic = group_topic("g1")
    streams = [push.listen(topic), push.listen(topic)]
    waiters = [asyncio.ensure_future(s.__anext__()) for s in streams]
    await asyncio.sleep(0)

    await push.emit(topic, "group-message", {"id": "m1"})

    for waiter in waiters:
        message = await asyncio.wait_for(waiter, timeout=1)
        assert message == {"event": "group-message", "data": {"id": "m1"}}
    for stream in streams:
        await stream.aclose()
    assert push.subscriber_count(topic) == 0
