from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import NotificationCategory, NotificationChannel, NotificationStatus
from .model import Notification


class NotificationRepository(Protocol):
    def claim(
        self,
        *,
        member_id: int,
        channel: NotificationChannel,
        category: NotificationCategory,
        cycle_end_date: Optional[date],
        subject: str,
        message: str,
        now: datetime,
    ) -> Optional[int]:
        """Insert a pending row unless a pending/sent one exists for the same cycle."""

        raise NotImplementedError

    def mark_sent(self, *, notification_id: int, now: datetime) -> bool:
        raise NotImplementedError

    def mark_failed(self, *, notification_id: int, error_message: str, now: datetime) -> bool:
        raise NotImplementedError

    def delete_created_before(self, cutoff: datetime) -> int:
        raise NotImplementedError

    def list_recent(
        self,
        *,
        member_id: Optional[int] = None,
        status: Optional[NotificationStatus] = None,
        limit: int = 100,
    ) -> Sequence[Notification]:
        raise NotImplementedError
