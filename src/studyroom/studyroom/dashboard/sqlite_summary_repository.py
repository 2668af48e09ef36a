from __future__ import annotations

import sqlite3
from datetime import date, timedelta
from typing import List

from ..common.datetime_utils import format_date, parse_iso_date
from ..database.sqlite_base import fetchall, fetchone
from .model import AttendanceReportRow, DailySummary, PaymentReportRow
from .repository import SummaryRepository


class SQLiteSummaryRepository(SummaryRepository):
    def __init__(self, cur: sqlite3.Cursor):
        self._cur = cur

    def _scalar(self, sql: str, params: tuple) -> float:
        self._cur.execute(sql, params)
        r = fetchone(self._cur)
        return (r or {}).get("v") or 0

    def daily_summary(self, day: date) -> DailySummary:
        day_s = format_date(day)
        month_s = day.strftime("%Y-%m")
        self._cur.execute(
            "SELECT COUNT(*) AS n, COALESCE(SUM(amount), 0) AS total FROM payments WHERE date(paid_at)=?",
            (day_s,),
        )
        payments = fetchone(self._cur) or {}

        return DailySummary(
            day=day,
            attendance_count=int(self._scalar("SELECT COUNT(*) AS v FROM attendance WHERE check_in_date=?", (day_s,))),
            payment_count=int(payments.get("n") or 0),
            payment_total=float(payments.get("total") or 0),
            month_payment_total=float(
                self._scalar(
                    "SELECT COALESCE(SUM(amount), 0) AS v FROM payments WHERE strftime('%Y-%m', paid_at)=?",
                    (month_s,),
                )
            ),
            new_members=int(self._scalar("SELECT COUNT(*) AS v FROM members WHERE date(created_at)=?", (day_s,))),
            active_members=int(self._scalar("SELECT COUNT(*) AS v FROM members WHERE status=?", ("active",))),
            expiring_tomorrow=int(
                self._scalar(
                    "SELECT COUNT(*) AS v FROM members WHERE status='active' AND end_date=?",
                    (format_date(day + timedelta(days=1)),),
                )
            ),
        )

    def attendance_report(self, *, date_from: date, date_to: date) -> List[AttendanceReportRow]:
        self._cur.execute(
            """
            SELECT m.id AS member_id, m.name AS member_name, m.phone,
                   COUNT(a.id) AS visit_count,
                   MIN(a.check_in) AS first_visit,
                   MAX(a.check_in) AS last_visit
            FROM members m
            LEFT JOIN attendance a
                ON a.member_id = m.id AND a.check_in_date BETWEEN ? AND ?
            WHERE m.status = 'active'
            GROUP BY m.id, m.name, m.phone
            ORDER BY visit_count DESC, m.name
            """,
            (format_date(date_from), format_date(date_to)),
        )
        return [
            AttendanceReportRow(
                member_id=int(r["member_id"]),
                member_name=r["member_name"],
                phone=r.get("phone"),
                visit_count=int(r["visit_count"]),
                first_visit=r.get("first_visit"),
                last_visit=r.get("last_visit"),
            )
            for r in fetchall(self._cur)
        ]

    def payment_report(self, *, date_from: date, date_to: date) -> List[PaymentReportRow]:
        self._cur.execute(
            """
            SELECT date(p.paid_at) AS payment_date, p.mode,
                   COUNT(p.id) AS transaction_count,
                   COALESCE(SUM(p.amount), 0) AS total_amount,
                   GROUP_CONCAT(m.name, '|') AS members
            FROM payments p
            JOIN members m ON m.id = p.member_id
            WHERE date(p.paid_at) BETWEEN ? AND ?
            GROUP BY date(p.paid_at), p.mode
            ORDER BY payment_date DESC, p.mode
            """,
            (format_date(date_from), format_date(date_to)),
        )
        return [
            PaymentReportRow(
                payment_date=parse_iso_date(r["payment_date"]),
                mode=r["mode"],
                transaction_count=int(r["transaction_count"]),
                total_amount=float(r["total_amount"]),
                members=sorted(set((r.get("members") or "").split("|")) - {""}),
            )
            for r in fetchall(self._cur)
        ]
