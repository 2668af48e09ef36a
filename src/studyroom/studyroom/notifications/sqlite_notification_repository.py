from __future__ import annotations

import sqlite3
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import format_date, format_datetime, parse_datetime, parse_iso_date
from ..core.enums import NotificationCategory, NotificationChannel, NotificationStatus
from ..database.sqlite_base import fetchall
from .model import Notification
from .repository import NotificationRepository


class SQLiteNotificationRepository(NotificationRepository):
    def __init__(self, cur: sqlite3.Cursor):
        self._cur = cur

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
        cycle = format_date(cycle_end_date) if cycle_end_date else None
        # Check and insert in one statement so overlapping runs cannot both claim.
        self._cur.execute(
            """
            INSERT INTO notifications(member_id, type, category, cycle_end_date, subject, message, status, created_at)
            SELECT ?, ?, ?, ?, ?, ?, 'pending', ?
            WHERE NOT EXISTS (
                SELECT 1 FROM notifications
                WHERE member_id=? AND category=? AND cycle_end_date IS ?
                  AND status IN ('pending', 'sent')
            )
            """,
            (
                int(member_id),
                channel.value,
                category.value,
                cycle,
                subject,
                message,
                format_datetime(now),
                int(member_id),
                category.value,
                cycle,
            ),
        )
        if self._cur.rowcount == 0:
            return None
        return int(self._cur.lastrowid)

    def mark_sent(self, *, notification_id: int, now: datetime) -> bool:
        self._cur.execute(
            "UPDATE notifications SET status='sent', sent_at=?, error_message=NULL WHERE id=?",
            (format_datetime(now), int(notification_id)),
        )
        return self._cur.rowcount > 0

    def mark_failed(self, *, notification_id: int, error_message: str, now: datetime) -> bool:
        self._cur.execute(
            "UPDATE notifications SET status='failed', error_message=?, sent_at=NULL WHERE id=?",
            (error_message[:500], int(notification_id)),
        )
        return self._cur.rowcount > 0

    def delete_created_before(self, cutoff: datetime) -> int:
        self._cur.execute("DELETE FROM notifications WHERE created_at < ?", (format_datetime(cutoff),))
        return int(self._cur.rowcount)

    def list_recent(
        self,
        *,
        member_id: Optional[int] = None,
        status: Optional[NotificationStatus] = None,
        limit: int = 100,
    ) -> Sequence[Notification]:
        clauses = ["1=1"]
        params: list[object] = []
        if member_id is not None:
            clauses.append("member_id=?")
            params.append(int(member_id))
        if status is not None:
            clauses.append("status=?")
            params.append(status.value)
        params.append(int(limit))

        self._cur.execute(
            f"""
            SELECT id, member_id, type, category, cycle_end_date, subject, message,
                   status, sent_at, error_message, created_at
            FROM notifications
            WHERE {' AND '.join(clauses)}
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            tuple(params),
        )
        return [
            Notification(
                notification_id=int(r["id"]),
                member_id=int(r["member_id"]),
                channel=NotificationChannel(r["type"]),
                category=NotificationCategory(r["category"]),
                status=NotificationStatus(r["status"]),
                created_at=parse_datetime(r["created_at"]),
                cycle_end_date=parse_iso_date(r["cycle_end_date"]) if r.get("cycle_end_date") else None,
                subject=r.get("subject"),
                message=r.get("message"),
                sent_at=parse_datetime(r["sent_at"]) if r.get("sent_at") else None,
                error_message=r.get("error_message"),
            )
            for r in fetchall(self._cur)
        ]
