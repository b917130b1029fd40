import pytest

from app.services import reminders
from app.services.push import LocalPushChannel
from app.types.reminder_contract import ItemKind
from app.workers import reminder as reminder_worker
from app.scripts import scan_due_reminders


def test_beat_schedules_each_kind_separately():
    from app.celery_app import celery_app

    schedule = celery_app.conf.beat_schedule
    assert {entry["args"] for entry in schedule.values()} == {("appointment",), ("routine",)}
    assert all(e["task"] == "app.workers.reminder.scan_due" for e in schedule.values())


def test_scan_due_task_reports_cycle(monkeypatch):
    seen = []

    async def fake_scan(kind):
        seen.append(kind)
        return reminders.CycleReport(kind=kind, candidates=3, due=2, notified=1, resumed=1)

    monkeypatch.setattr(reminder_worker, "_scan_kind", fake_scan)

    result = reminder_worker.scan_due.apply(args=["routine"]).get()

    assert seen == [ItemKind.ROUTINE]
    assert result == {
        "kind": "routine",
        "candidates": 3,
        "due": 2,
        "notified": 1,
        "resumed": 1,
    }


def test_scan_due_task_propagates_failures(monkeypatch):
    async def broken(kind):
        raise ConnectionError("database unavailable")

    monkeypatch.setattr(reminder_worker, "_scan_kind", broken)

    outcome = reminder_worker.scan_due.apply(args=["appointment"])

    assert outcome.failed()
    with pytest.raises(ConnectionError):
        outcome.get()


@pytest.mark.asyncio
async def test_script_isolates_failing_kind(monkeypatch):
    ran = []

    async def fake_cycle(kind, **_kwargs):
        ran.append(kind)
        if kind is ItemKind.APPOINTMENT:
            raise ConnectionError("database unavailable")
        return reminders.CycleReport(kind=kind, candidates=0, due=0, notified=0, resumed=0)

    async def no_dispose():
        pass

    monkeypatch.setattr(scan_due_reminders.reminders, "run_cycle", fake_cycle)
    monkeypatch.setattr(scan_due_reminders, "build_push_channel", lambda _s: LocalPushChannel())
    monkeypatch.setattr(scan_due_reminders.db, "dispose_engine", no_dispose)

    failed = await scan_due_reminders.main()

    assert failed == 1
    assert sorted(k.value for k in ran) == ["appointment", "routine"]
