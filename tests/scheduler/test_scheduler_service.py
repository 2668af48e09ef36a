from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.studyroom.studyroom.core.exceptions import NotFoundError, ValidationError
from src.studyroom.studyroom.scheduler.jobs import DEFAULT_SCHEDULES, Job
from src.studyroom.studyroom.scheduler.service import SchedulerService
from src.studyroom.studyroom.scheduler.tickers import APSchedulerTicker, parse_cron


def _service(jobs, tickers, clock):
    return SchedulerService(jobs, ticker_factory=tickers, clock=clock)


def test_start_is_idempotent(tickers, clock):
    svc = _service([Job("noop", "* * * * *", "does nothing", lambda: None)], tickers, clock)

    svc.start()
    svc.start()

    assert len(tickers.created) == 1
    assert svc.get_status()["is_running"] is True


def test_stop_cancels_timers_before_returning(tickers, clock):
    calls = []
    svc = _service([Job("count", "* * * * *", "counts", lambda: calls.append(1))], tickers, clock)
    svc.start()
    ticker = tickers.current
    ticker.fire("count")

    svc.stop()
    ticker.fire("count")

    assert calls == [1]
    assert ticker.shut_down
    assert svc.get_status()["is_running"] is False


def test_restart_after_stop_uses_fresh_ticker(tickers, clock):
    svc = _service([Job("noop", "* * * * *", "does nothing", lambda: None)], tickers, clock)
    svc.start()
    svc.stop()
    svc.start()

    assert len(tickers.created) == 2
    assert svc.is_running


def test_failing_job_is_isolated(tickers, clock):
    ran = []

    def boom():
        raise RuntimeError("disk on fire")

    svc = _service(
        [
            Job("boom", "* * * * *", "always fails", boom),
            Job("ok", "* * * * *", "works", lambda: ran.append(1) or {"ok": True}),
        ],
        tickers,
        clock,
    )
    svc.start()

    tickers.current.fire("boom")
    tickers.current.fire("ok")
    tickers.current.fire("boom")

    jobs = {j["name"]: j for j in svc.get_status()["jobs"]}
    assert jobs["boom"]["last_error"] == "disk on fire"
    assert jobs["boom"]["failure_count"] == 2
    assert jobs["ok"]["last_result"] == {"ok": True}
    assert jobs["ok"]["last_error"] is None
    assert ran == [1]
    assert svc.is_running


def test_run_job_works_while_stopped_and_reraises(tickers, clock):
    def boom():
        raise RuntimeError("nope")

    svc = _service([Job("boom", "* * * * *", "fails", boom)], tickers, clock)

    with pytest.raises(RuntimeError):
        svc.run_job("boom")
    with pytest.raises(NotFoundError):
        svc.run_job("missing")

    status = svc.get_status()
    assert status["is_running"] is False
    assert status["jobs"][0]["last_run"] == "2024-01-01 09:00:00"


def test_disabled_job_is_skipped_on_schedule_but_runs_manually(tickers, clock):
    calls = []
    svc = _service(
        [Job("backup", "0 2 * * *", "backup", lambda: calls.append(1), enabled=lambda: False)], tickers, clock
    )
    svc.start()

    tickers.current.fire("backup")
    assert calls == []

    svc.run_job("backup")
    assert calls == [1]


def test_invalid_cron_and_duplicate_names_are_rejected(tickers, clock):
    with pytest.raises(ValidationError):
        _service([Job("bad", "every day", "bad", lambda: None)], tickers, clock)
    with pytest.raises(ValidationError):
        _service([Job("a", "* * * * *", "", lambda: None), Job("a", "* * * * *", "", lambda: None)], tickers, clock)


def test_default_maintenance_jobs(container, tickers):
    container.scheduler_service.start()

    status = container.scheduler_service.get_status()
    schedules = {j["name"]: j["schedule"] for j in status["jobs"]}
    assert schedules == DEFAULT_SCHEDULES
    assert all(j["next_run"] for j in status["jobs"])
    assert set(tickers.current.jobs) == set(DEFAULT_SCHEDULES)


def test_scheduled_sweep_expires_overdue_members(container, enroll, tickers, clock):
    member = enroll()
    container.scheduler_service.start()
    clock.set(2024, 2, 2, 0, 0, 0)

    tickers.current.fire("expiry_sweep")

    assert container.membership_service.get_member(member.member_id).status.value == "expired"
    sweep = next(j for j in container.scheduler_service.get_status()["jobs"] if j["name"] == "expiry_sweep")
    assert sweep["last_result"] == {"expired": 1}


def test_manual_triggers_work_while_stopped(container, enroll, sender, clock):
    enroll()
    clock.set(2024, 1, 25, 9, 0, 0)

    backup = container.scheduler_service.trigger_backup()
    reminders = container.scheduler_service.trigger_expiry_reminders()

    assert backup["file"].startswith("studyroom-backup-")
    assert reminders["sent"] == 1
    assert len(sender.sent) == 1


def test_auto_backup_setting_disables_scheduled_backup_only(container, tickers):
    container.settings_service.update({"auto_backup": "0"})
    container.scheduler_service.start()

    tickers.current.fire("backup")
    assert container.backup_manager.list_backups() == []

    container.scheduler_service.trigger_backup()
    assert len(container.backup_manager.list_backups()) == 1


def test_backup_retention_setting_is_applied(container):
    container.settings_service.update({"backup_retention": "1"})

    container.scheduler_service.trigger_backup()
    container.scheduler_service.trigger_backup()

    assert len(container.backup_manager.list_backups()) == 1


def test_parse_cron_next_fire_time():
    trigger = parse_cron("0 2 * * *", timezone="UTC")
    now = datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc)

    assert trigger.get_next_fire_time(None, now) == datetime(2024, 1, 2, 2, 0, tzinfo=timezone.utc)


def test_parse_cron_uses_crontab_weekday_numbering():
    trigger = parse_cron("0 1 * * 0", timezone="UTC")
    monday = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)

    assert trigger.get_next_fire_time(None, monday) == datetime(2024, 1, 7, 1, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "day_of_week, expected_day",
    [
        ("0-5", 7),
        ("0-6", 6),
        ("1-5", 8),
        ("*/2", 6),
        ("7", 7),
        ("sat,0", 6),
    ],
)
def test_parse_cron_weekday_ranges_starting_on_sunday(day_of_week, expected_day):
    saturday = datetime(2024, 1, 6, 0, 0, tzinfo=timezone.utc)

    trigger = parse_cron(f"0 9 * * {day_of_week}", timezone="UTC")

    assert trigger.get_next_fire_time(None, saturday) == datetime(2024, 1, expected_day, 9, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("day_of_week", ["5-1", "8", "0-9"])
def test_parse_cron_rejects_bad_weekdays(day_of_week):
    with pytest.raises(ValidationError):
        parse_cron(f"0 9 * * {day_of_week}")


def test_apscheduler_ticker_lifecycle():
    ticker = APSchedulerTicker(timezone="UTC")
    ticker.add("noop", "0 2 * * *", lambda: None)
    ticker.start()
    try:
        assert ticker.next_run("noop") is not None
    finally:
        ticker.shutdown()
    assert ticker.next_run("noop") is None
