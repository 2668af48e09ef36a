from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import add_days, format_date, now_local
from ..core.constants import (
    DEFAULT_NOTIFICATION_RETENTION_DAYS,
    DEFAULT_REMINDER_LEAD_DAYS,
    SETTING_LIBRARY_NAME,
    SETTING_NOTIFICATION_DAYS,
    SETTING_NOTIFICATION_RETENTION_DAYS,
)
from ..core.enums import NotificationCategory, NotificationChannel, NotificationStatus
from ..database.store import LedgerStore
from ..members.model import Member
from ..settings.service import int_setting
from .model import DispatchResult, Notification, OutgoingMessage
from .sender import LoggingNotificationSender, NotificationSender

logger = logging.getLogger(__name__)

_CHANNEL_ORDER = (NotificationChannel.EMAIL, NotificationChannel.WHATSAPP, NotificationChannel.SMS)


def build_expiry_reminder(member: Member, *, today, library_name: str, channel: NotificationChannel) -> OutgoingMessage:
    days_left = (member.end_date - today).days
    when = "today" if days_left == 0 else f"in {days_left} day{'s' if days_left != 1 else ''}"
    subject = f"{library_name}: your membership expires {when}"
    body = (
        f"Hello {member.name},\n\n"
        f"Your {member.plan_name or 'membership'} plan at {library_name} ends on "
        f"{format_date(member.end_date)}. Renew at the front desk to keep your seat"
        f"{' ' + member.seat_no if member.seat_no else ''}.\n"
    )
    recipient = member.email if channel == NotificationChannel.EMAIL else member.phone
    return OutgoingMessage(
        member_id=member.member_id,
        member_name=member.name,
        channel=channel,
        recipient=recipient,
        subject=subject,
        body=body,
    )


class NotificationService:
    """Expiry reminders and notification housekeeping.

    One reminder per member per membership cycle; the cycle is identified by the
    member's ``end_date``. Failed rows never block a later retry.
    """

    def __init__(
        self,
        store: LedgerStore,
        *,
        sender: Optional[NotificationSender] = None,
        clock: Callable[[], datetime] = now_local,
        lead_days: int = DEFAULT_REMINDER_LEAD_DAYS,
        retention_days: int = DEFAULT_NOTIFICATION_RETENTION_DAYS,
        library_name: str = "Study Room",
    ):
        self._store = store
        self._sender = sender or LoggingNotificationSender()
        self._clock = clock
        self._lead_days = int(lead_days)
        self._retention_days = int(retention_days)
        self._library_name = library_name

    def _pick_channel(self, member: Member) -> Optional[NotificationChannel]:
        for channel in _CHANNEL_ORDER:
            if channel not in self._sender.channels:
                continue
            if channel == NotificationChannel.EMAIL and member.email:
                return channel
            if channel != NotificationChannel.EMAIL and member.phone:
                return channel
        return None

    def dispatch_expiry_reminders(self, *, now: Optional[datetime] = None) -> DispatchResult:
        now = now or self._clock()
        today = now.date()
        result = DispatchResult()

        with self._store.read() as ledger:
            lead = int_setting(ledger.settings, SETTING_NOTIFICATION_DAYS, self._lead_days)
            library_name = ledger.settings.get(SETTING_LIBRARY_NAME) or self._library_name
            candidates = ledger.members.list_expiring(start=today, end=add_days(today, lead))

        for member in candidates:
            channel = self._pick_channel(member)
            if channel is None:
                result.skipped += 1
                continue
            message = build_expiry_reminder(member, today=today, library_name=library_name, channel=channel)

            notification_id = None
            try:
                with self._store.transaction() as ledger:
                    notification_id = ledger.notifications.claim(
                        member_id=member.member_id,
                        channel=channel,
                        category=NotificationCategory.EXPIRY_REMINDER,
                        cycle_end_date=member.end_date,
                        subject=message.subject,
                        message=message.body,
                        now=now,
                    )
                if notification_id is None:
                    result.skipped += 1
                    continue

                self._sender.send(message)

                with self._store.transaction() as ledger:
                    ledger.notifications.mark_sent(notification_id=notification_id, now=now)
            except Exception as e:
                error = str(e) or type(e).__name__
                logger.warning("Reminder to member %s failed: %s", member.member_id, error)
                if notification_id is not None:
                    self._mark_failed(notification_id, error, now=now)
                result.failed += 1
                result.errors.append({"member_id": member.member_id, "error": error})
                continue
            result.sent += 1

        logger.info(
            "Expiry reminders: %d sent, %d failed, %d skipped", result.sent, result.failed, result.skipped
        )
        return result

    def _mark_failed(self, notification_id: int, error: str, *, now: datetime) -> None:
        # The failed row is retried on the next run either way.
        try:
            with self._store.transaction() as ledger:
                ledger.notifications.mark_failed(notification_id=notification_id, error_message=error, now=now)
        except Exception:
            logger.exception("Could not mark notification %s as failed", notification_id)

    def cleanup_old(self, *, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        with self._store.transaction() as ledger:
            days = int_setting(ledger.settings, SETTING_NOTIFICATION_RETENTION_DAYS, self._retention_days)
            removed = ledger.notifications.delete_created_before(now - timedelta(days=days))
        logger.info("Removed %d notification(s) older than %d days", removed, days)
        return removed

    def list_recent(
        self,
        *,
        member_id: Optional[int] = None,
        status: Optional[NotificationStatus] = None,
        limit: int = 100,
    ) -> Sequence[Notification]:
        with self._store.read() as ledger:
            return ledger.notifications.list_recent(member_id=member_id, status=status, limit=limit)
