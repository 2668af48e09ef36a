from __future__ import annotations

from src.studyroom.studyroom.core.enums import NotificationChannel, NotificationStatus
from src.studyroom.studyroom.core.exceptions import StorageError
from src.studyroom.studyroom.notifications.sqlite_notification_repository import SQLiteNotificationRepository


def test_reminder_sent_once_per_membership_cycle(container, enroll, sender, clock):
    member = enroll(email="anita@example.com")
    clock.set(2024, 1, 25, 9, 0, 0)
    svc = container.notification_service

    first = svc.dispatch_expiry_reminders()
    second = svc.dispatch_expiry_reminders()

    assert (first.sent, first.failed) == (1, 0)
    assert (second.sent, second.skipped) == (0, 1)
    assert len(sender.sent) == 1
    assert sender.sent[0].channel == NotificationChannel.EMAIL
    assert sender.sent[0].recipient == "anita@example.com"
    assert "2024-01-31" in sender.sent[0].body
    rows = svc.list_recent(member_id=member.member_id)
    assert [r.status for r in rows] == [NotificationStatus.SENT]


def test_members_outside_lead_window_are_not_reminded(container, enroll, sender, clock):
    enroll()
    clock.set(2024, 1, 20, 9, 0, 0)

    result = container.notification_service.dispatch_expiry_reminders()

    assert result.sent == 0
    assert sender.sent == []


def test_lead_days_come_from_settings(container, enroll, sender, clock):
    enroll()
    container.settings_service.update({"notification_days": "15"})
    clock.set(2024, 1, 20, 9, 0, 0)

    assert container.notification_service.dispatch_expiry_reminders().sent == 1


def test_send_failure_is_isolated_and_retryable(container, enroll, sender, clock):
    failing = enroll("Failing")
    working = enroll("Working")
    sender.fail_for.add(failing.member_id)
    clock.set(2024, 1, 25, 9, 0, 0)
    svc = container.notification_service

    result = svc.dispatch_expiry_reminders()

    assert (result.sent, result.failed) == (1, 1)
    assert result.errors[0]["member_id"] == failing.member_id
    failed_rows = svc.list_recent(member_id=failing.member_id)
    assert failed_rows[0].status == NotificationStatus.FAILED
    assert "unreachable" in failed_rows[0].error_message
    assert [m.member_id for m in sender.sent] == [working.member_id]

    sender.fail_for.clear()
    retry = svc.dispatch_expiry_reminders()

    assert (retry.sent, retry.failed) == (1, 0)
    statuses = sorted(r.status.value for r in svc.list_recent(member_id=failing.member_id))
    assert statuses == ["failed", "sent"]


def test_renewal_starts_a_new_reminder_cycle(container, enroll, sender, clock, monthly_plan_id):
    member = enroll()
    clock.set(2024, 1, 25, 9, 0, 0)
    container.notification_service.dispatch_expiry_reminders()
    container.membership_service.renew(member.member_id, monthly_plan_id)
    clock.set(2024, 2, 25, 9, 0, 0)

    assert container.notification_service.dispatch_expiry_reminders().sent == 1
    assert len(sender.sent) == 2


def test_suspended_members_are_not_reminded(container, enroll, sender, clock):
    member = enroll()
    container.membership_service.suspend(member.member_id)
    clock.set(2024, 1, 25, 9, 0, 0)

    assert container.notification_service.dispatch_expiry_reminders().sent == 0


def test_cleanup_removes_rows_past_retention(container, enroll, clock):
    enroll()
    clock.set(2024, 1, 25, 9, 0, 0)
    container.notification_service.dispatch_expiry_reminders()

    clock.set(2024, 3, 1, 9, 0, 0)
    assert container.notification_service.cleanup_old() == 0

    clock.set(2024, 5, 1, 9, 0, 0)
    assert container.notification_service.cleanup_old() == 1
    assert container.notification_service.list_recent() == []


def test_store_failure_for_one_member_does_not_stop_the_batch(container, enroll, sender, clock, monkeypatch):
    locked = enroll("Locked")
    other = enroll("Other")
    original_claim = SQLiteNotificationRepository.claim

    def claim(self, **kwargs):
        if kwargs["member_id"] == locked.member_id:
            raise StorageError("database is locked")
        return original_claim(self, **kwargs)

    monkeypatch.setattr(SQLiteNotificationRepository, "claim", claim)
    clock.set(2024, 1, 25, 9, 0, 0)

    result = container.notification_service.dispatch_expiry_reminders()

    assert (result.sent, result.failed) == (1, 1)
    assert result.errors == [{"member_id": locked.member_id, "error": "database is locked"}]
    assert [m.member_id for m in sender.sent] == [other.member_id]
    assert container.notification_service.list_recent(member_id=locked.member_id) == []


def test_mark_sent_failure_is_recorded_as_failed(container, enroll, sender, clock, monkeypatch):
    member = enroll()

    def mark_sent(self, **kwargs):
        raise StorageError("disk I/O error")

    monkeypatch.setattr(SQLiteNotificationRepository, "mark_sent", mark_sent)
    clock.set(2024, 1, 25, 9, 0, 0)

    result = container.notification_service.dispatch_expiry_reminders()

    assert (result.sent, result.failed) == (0, 1)
    rows = container.notification_service.list_recent(member_id=member.member_id)
    assert [r.status for r in rows] == [NotificationStatus.FAILED]
