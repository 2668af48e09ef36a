from __future__ import annotations

import sqlite3
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import format_date, format_datetime, parse_datetime
from ..core.enums import AttendanceSource
from ..database.sqlite_base import fetchall, fetchone
from .model import AttendanceQuery, AttendanceRow, AttendanceSession
from .repository import AttendanceRepository


class SQLiteAttendanceRepository(AttendanceRepository):
    def __init__(self, cur: sqlite3.Cursor):
        self._cur = cur

    def get_open_session(self, member_id: int, day: date) -> Optional[AttendanceSession]:
        self._cur.execute(
            """
            SELECT id, member_id, check_in, check_out, source
            FROM attendance
            WHERE member_id=? AND check_in_date=? AND check_out IS NULL
            ORDER BY check_in DESC, id DESC
            LIMIT 1
            """,
            (int(member_id), format_date(day)),
        )
        r = fetchone(self._cur)
        if not r:
            return None
        return AttendanceSession(
            session_id=int(r["id"]),
            member_id=int(r["member_id"]),
            check_in=parse_datetime(r["check_in"]),
            check_out=None,
            source=AttendanceSource(r["source"]),
        )

    def create_checkin(self, *, member_id: int, check_in: datetime, source: AttendanceSource) -> int:
        # ux_attendance_open_session rejects a second open row for the same day.
        self._cur.execute(
            """
            INSERT INTO attendance(member_id, check_in, check_in_date, source, created_at)
            VALUES(?,?,?,?,?)
            """,
            (
                int(member_id),
                format_datetime(check_in),
                format_date(check_in.date()),
                source.value,
                format_datetime(check_in),
            ),
        )
        return int(self._cur.lastrowid)

    def close_session(self, *, session_id: int, check_out: datetime) -> bool:
        self._cur.execute(
            "UPDATE attendance SET check_out=? WHERE id=? AND check_out IS NULL",
            (format_datetime(check_out), int(session_id)),
        )
        return self._cur.rowcount > 0

    def find(self, query: AttendanceQuery) -> Sequence[AttendanceRow]:
        clauses = ["1=1"]
        params: list[object] = []

        if query.on_date is not None:
            clauses.append("a.check_in_date=?")
            params.append(format_date(query.on_date))
        if query.member_id is not None:
            clauses.append("a.member_id=?")
            params.append(int(query.member_id))
        if query.date_from is not None:
            clauses.append("a.check_in_date >= ?")
            params.append(format_date(query.date_from))
        if query.date_to is not None:
            clauses.append("a.check_in_date <= ?")
            params.append(format_date(query.date_to))

        self._cur.execute(
            f"""
            SELECT a.id, a.member_id, m.name AS member_name, m.phone,
                   a.check_in, a.check_out, a.source
            FROM attendance a
            JOIN members m ON m.id = a.member_id
            WHERE {' AND '.join(clauses)}
            ORDER BY a.check_in DESC, a.id DESC
            """,
            tuple(params),
        )
        return [
            AttendanceRow(
                session_id=int(r["id"]),
                member_id=int(r["member_id"]),
                member_name=r["member_name"],
                phone=r.get("phone"),
                check_in=parse_datetime(r["check_in"]),
                check_out=parse_datetime(r["check_out"]) if r.get("check_out") else None,
                source=AttendanceSource(r["source"]),
            )
            for r in fetchall(self._cur)
        ]
