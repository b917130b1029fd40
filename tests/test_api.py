from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from app.dependencies import get_channels
from app.services.channels import NotificationChannels
from config import settings
from fakes import ExplodingSender

U1 = {"X-User-Id": "u1"}
U2 = {"X-User-Id": "u2"}


async def _profile(client, headers, **fields):
    body = {"email": "a@x.com", "phone_number": "9876543210", **fields}
    res = await client.put("/api/profiles", json=body, headers=headers)
    assert res.status_code == 200
    return res.json()


def _soon(minutes=30):
    when = datetime.now(ZoneInfo(settings.SCHEDULE_TIMEZONE)) + timedelta(minutes=minutes)
    return when.strftime("%Y-%m-%d"), when.strftime("%H:%M")


@pytest.mark.asyncio
async def test_health(client):
    res = await client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"ok": True}


@pytest.mark.asyncio
async def test_requests_without_identity_are_rejected(client):
    res = await client.get("/api/appointments")
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_profile_requires_email_on_create(client):
    res = await client.put("/api/profiles", json={"full_name": "Asha"}, headers=U1)
    assert res.status_code == 400

    assert (await client.get("/api/profiles", headers=U1)).status_code == 404
    profile = await _profile(client, U1, full_name="Asha")
    assert profile["role"] == "caretaker"
    assert (await client.get("/api/profiles", headers=U1)).json()["full_name"] == "Asha"


@pytest.mark.asyncio
async def test_create_appointment_sends_confirmation(client, sms_transport, email_sender):
    await _profile(client, U1)

    res = await client.post(
        "/api/appointments",
        json={"title": "Checkup", "date": "2026-10-20", "time": "10:30", "location": "City Clinic"},
        headers=U1,
    )

    assert res.status_code == 201
    body = res.json()
    assert body["reminder_status"] == "pending"
    assert body["reminder_sent"] is False
    assert body["external_reminder_sent"] is False
    assert [to for to, _ in sms_transport.calls] == ["+919876543210"]
    assert "Checkup" in sms_transport.calls[0][1]
    assert [subject for _, subject, _ in email_sender.sent] == ["Appointment Scheduled"]


@pytest.mark.asyncio
async def test_create_appointment_survives_broken_channels(client):
    from main import app

    app.dependency_overrides[get_channels] = lambda: NotificationChannels(
        email=ExplodingSender(), sms=ExplodingSender()
    )
    await _profile(client, U1)

    res = await client.post(
        "/api/appointments",
        json={"title": "Checkup", "date": "2026-10-20", "time": "10:30"},
        headers=U1,
    )

    assert res.status_code == 201
    listed = await client.get("/api/appointments", headers=U1)
    assert [a["title"] for a in listed.json()] == ["Checkup"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "date, time",
    [
        ("20/10/2026", "10:30"),
        ("2026-W43-1", "09:30"),
        ("20261020", "09:30"),
        ("2026-10-20", "7pm"),
        ("2026-10-20", "T0930"),
        ("2026-10-20", "0930"),
        ("2026-10-20", "09:30:00"),
        ("2026-10-20", "9:30"),
    ],
)
async def test_malformed_date_or_time_is_rejected(client, date, time):
    res = await client.post(
        "/api/appointments",
        json={"title": "Checkup", "date": date, "time": time},
        headers=U1,
    )
    assert res.status_code == 422

    res = await client.post(
        "/api/routines",
        json={"title": "Walk", "date": date, "time": time},
        headers=U1,
    )
    assert res.status_code == 422
    assert (await client.get("/api/appointments", headers=U1)).json() == []


@pytest.mark.asyncio
async def test_reschedule_resets_reminder_flags(client, sqlite_db):
    from app.types.reminder_contract import ItemKind, ReminderStatus

    created = (
        await client.post(
            "/api/routines",
            json={"title": "Walk", "date": "2026-10-20", "time": "07:00", "category": "exercise"},
            headers=U1,
        )
    ).json()
    await sqlite_db.update_reminder_status(
        ItemKind.ROUTINE, [created["id"]], ReminderStatus.IN_APP_SENT
    )

    res = await client.put(
        f"/api/routines/{created['id']}", json={"time": "08:00"}, headers=U1
    )

    assert res.status_code == 200
    body = res.json()
    assert body["time"] == "08:00"
    assert body["category"] == "exercise"
    assert body["reminder_sent"] is False

    missing = await client.put("/api/routines/nope", json={"time": "08:00"}, headers=U1)
    assert missing.status_code == 404

    gone = await client.delete(f"/api/routines/{created['id']}", headers=U1)
    assert gone.status_code == 204
    assert (await client.get("/api/routines", headers=U1)).json() == []


@pytest.mark.asyncio
async def test_due_check_is_read_only(client):
    date, time = _soon()
    await client.post(
        "/api/appointments", json={"title": "Checkup", "date": date, "time": time}, headers=U1
    )

    for _ in range(2):
        res = await client.post("/api/reminders/appointment/check")
        assert res.status_code == 200
        report = res.json()
        assert report["kind"] == "appointment"
        assert report["to_notify"] == 1
        assert report["items"][0]["title"] == "Checkup"

    assert (await client.get("/api/notifications", headers=U1)).json() == []


@pytest.mark.asyncio
async def test_due_check_rejects_unknown_kind(client):
    res = await client.post("/api/reminders/meeting/check")
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_notification_test_endpoint(client, sms_transport, email_sender):
    res = await client.post("/api/notifications/test", headers=U1)
    assert res.status_code == 404

    await _profile(client, U1)
    res = await client.post("/api/notifications/test", headers=U1)

    assert res.status_code == 200
    assert res.json() == {"ok": True, "email": "a@x.com", "phone_number": "9876543210"}
    assert [to for to, _ in sms_transport.calls] == ["+919876543210"]
    assert [to for to, _, _ in email_sender.sent] == ["a@x.com"]


@pytest.mark.asyncio
async def test_test_sms_endpoint(client, sms_transport):
    res = await client.post("/api/test-sms", json={"phone_number": "+14155551234"})

    assert res.status_code == 200
    assert sms_transport.calls[0][0] == "+14155551234"


@pytest.mark.asyncio
async def test_group_chat_notifies_other_members(client, push):
    await _profile(client, U1, is_profile_complete=True)
    await _profile(client, U2, email="b@x.com", is_profile_complete=True)

    denied = await client.post(
        "/api/groups",
        json={"name": "Carers", "description": "weekly", "schedule": "Mon 6pm"},
        headers={"X-User-Id": "u3"},
    )
    assert denied.status_code == 403

    group = (
        await client.post(
            "/api/groups",
            json={"name": "Carers", "description": "weekly", "schedule": "Mon 6pm"},
            headers=U1,
        )
    ).json()
    for headers in (U1, U2):
        res = await client.post(f"/api/groups/{group['id']}/toggle", headers=headers)
        assert res.status_code == 200

    summaries = (await client.get("/api/groups", headers=U2)).json()
    assert summaries[0]["participants"] == 2 and summaries[0]["is_member"] is True

    posted = await client.post(
        f"/api/chats/{group['id']}", json={"message": "  hello all  "}, headers=U1
    )
    assert posted.status_code == 201
    message = posted.json()
    assert message["message"] == "hello all"
    assert message["user_profile"]["email"] == "a@x.com"

    inbox = (await client.get("/api/notifications", headers=U2)).json()
    assert [n["type"] for n in inbox] == ["chat"]
    assert inbox[0]["data"] == {"group_id": group["id"], "message_id": message["id"]}
    assert (await client.get("/api/notifications", headers=U1)).json() == []

    topics = [(topic, event) for topic, event, _ in push.events]
    assert topics == [
        (f"group:{group['id']}", "group-message"),
        ("notifications:u2", "notification"),
    ]

    history = (await client.get(f"/api/chats/{group['id']}", headers=U2)).json()
    assert [m["message"] for m in history] == ["hello all"]

    blank = await client.post(f"/api/chats/{group['id']}", json={"message": "   "}, headers=U1)
    assert blank.status_code == 400


@pytest.mark.asyncio
async def test_mark_notifications_read(client, sqlite_db):
    from app.types.reminder_contract import NotificationDraft

    [first, _] = await sqlite_db.insert_notifications(
        [NotificationDraft(user_id="u1", type="routine", title="t", message=m) for m in ("a", "b")]
    )

    assert (await client.post("/api/notifications/missing/read", headers=U1)).status_code == 404
    assert (await client.post(f"/api/notifications/{first.id}/read", headers=U1)).json() == {"ok": True}
    unread = (await client.get("/api/notifications?unread_only=true", headers=U1)).json()
    assert [n["message"] for n in unread] == ["b"]
    assert (await client.post("/api/notifications/read-all", headers=U1)).json() == {"updated": 1}


@pytest.mark.asyncio
async def test_medical_records_crud_is_owner_scoped(client):
    for date, kind in (("2026-03-02", "lab"), ("2026-09-14", "visit"), ("2025-12-30", "vaccine")):
        res = await client.post(
            "/api/medical-records",
            json={"date": date, "type": kind, "description": f"{kind} notes"},
            headers=U1,
        )
        assert res.status_code == 201

    listed = (await client.get("/api/medical-records", headers=U1)).json()
    assert [r["date"] for r in listed] == ["2026-09-14", "2026-03-02", "2025-12-30"]
    assert (await client.get("/api/medical-records", headers=U2)).json() == []

    record_id = listed[0]["id"]
    res = await client.put(
        f"/api/medical-records/{record_id}", json={"description": "follow-up booked"}, headers=U1
    )
    assert res.status_code == 200
    assert res.json()["description"] == "follow-up booked"
    assert res.json()["type"] == "visit"

    other = await client.put(
        f"/api/medical-records/{record_id}", json={"description": "x"}, headers=U2
    )
    assert other.status_code == 404
    assert (await client.delete(f"/api/medical-records/{record_id}", headers=U2)).status_code == 404

    assert (await client.delete(f"/api/medical-records/{record_id}", headers=U1)).status_code == 204
    remaining = (await client.get("/api/medical-records", headers=U1)).json()
    assert [r["type"] for r in remaining] == ["lab", "vaccine"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"date": "2026-10-20", "type": "lab"},
        {"date": "2026-10-20", "type": "  ", "description": "notes"},
        {"date": "2026-W43-1", "type": "lab", "description": "notes"},
    ],
)
async def test_medical_record_requires_fields(client, body):
    res = await client.post("/api/medical-records", json=body, headers=U1)
    assert res.status_code == 422
