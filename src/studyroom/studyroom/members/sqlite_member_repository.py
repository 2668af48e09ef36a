from __future__ import annotations

import sqlite3
from datetime import date, datetime
from typing import Mapping, Optional, Sequence

from ..common.datetime_utils import format_date, format_datetime, parse_iso_date
from ..core.enums import MemberStatus
from ..database.sqlite_base import fetchall, fetchone
from .model import Member, MemberFilter, NewMember
from .repository import EDITABLE_FIELDS, MemberRepository

_SELECT = """
    SELECT m.id, m.name, m.email, m.phone, m.birth_date, m.city, m.address, m.seat_no,
           m.plan_id, m.join_date, m.end_date, m.status, m.biometric_ref, m.qr_code,
           mp.name AS plan_name
    FROM members m
    LEFT JOIN membership_plans mp ON mp.id = m.plan_id
"""


def _to_member(r: dict) -> Member:
    return Member(
        member_id=int(r["id"]),
        name=r["name"],
        email=r.get("email"),
        phone=r.get("phone"),
        seat_no=r.get("seat_no"),
        plan_id=int(r["plan_id"]) if r.get("plan_id") is not None else None,
        join_date=parse_iso_date(r["join_date"]),
        end_date=parse_iso_date(r["end_date"]),
        status=MemberStatus(r["status"]),
        birth_date=parse_iso_date(r["birth_date"]) if r.get("birth_date") else None,
        city=r.get("city"),
        address=r.get("address"),
        biometric_ref=r.get("biometric_ref"),
        qr_code=r.get("qr_code"),
        plan_name=r.get("plan_name"),
    )


class SQLiteMemberRepository(MemberRepository):
    def __init__(self, cur: sqlite3.Cursor):
        self._cur = cur

    def get_by_id(self, member_id: int) -> Optional[Member]:
        self._cur.execute(_SELECT + " WHERE m.id=?", (int(member_id),))
        r = fetchone(self._cur)
        return _to_member(r) if r else None

    def get_by_qr_code(self, qr_code: str) -> Optional[Member]:
        self._cur.execute(_SELECT + " WHERE m.qr_code=?", (qr_code,))
        r = fetchone(self._cur)
        return _to_member(r) if r else None

    def find(self, criteria: MemberFilter) -> Sequence[Member]:
        clauses = ["1=1"]
        params: list[object] = []

        if criteria.status is not None:
            clauses.append("m.status=?")
            params.append(criteria.status.value)
        if criteria.plan_id is not None:
            clauses.append("m.plan_id=?")
            params.append(int(criteria.plan_id))
        if criteria.search:
            clauses.append("(m.name LIKE ? OR m.email LIKE ? OR m.phone LIKE ? OR m.seat_no LIKE ?)")
            term = f"%{criteria.search}%"
            params.extend([term, term, term, term])

        sql = _SELECT + f" WHERE {' AND '.join(clauses)} ORDER BY m.created_at DESC, m.id DESC"
        if criteria.limit:
            sql += " LIMIT ?"
            params.append(int(criteria.limit))

        self._cur.execute(sql, tuple(params))
        return [_to_member(r) for r in fetchall(self._cur)]

    def create(self, *, member: NewMember, plan_id: int, end_date: date, now: datetime) -> int:
        stamp = format_datetime(now)
        self._cur.execute(
            """
            INSERT INTO members(name, email, phone, birth_date, city, address, seat_no, plan_id,
                                join_date, end_date, status, created_at, updated_at)
            VALUES(?,?,?,?,?,?,?,?,?,?,?,?,?)
            """,
            (
                member.name,
                member.email,
                member.phone,
                format_date(member.birth_date) if member.birth_date else None,
                member.city,
                member.address,
                member.seat_no,
                int(plan_id),
                format_date(member.join_date),
                format_date(end_date),
                MemberStatus.ACTIVE.value,
                stamp,
                stamp,
            ),
        )
        return int(self._cur.lastrowid)

    def set_qr_code(self, *, member_id: int, qr_code: str) -> bool:
        self._cur.execute("UPDATE members SET qr_code=? WHERE id=?", (qr_code, int(member_id)))
        return self._cur.rowcount > 0

    def update_fields(self, *, member_id: int, fields: Mapping[str, object], now: datetime) -> bool:
        columns = [c for c in EDITABLE_FIELDS if c in fields]
        if not columns:
            return False
        assignments = ", ".join(f"{c}=?" for c in columns)
        params = [fields[c] for c in columns] + [format_datetime(now), int(member_id)]
        self._cur.execute(f"UPDATE members SET {assignments}, updated_at=? WHERE id=?", tuple(params))
        return self._cur.rowcount > 0

    def apply_renewal(self, *, member_id: int, plan_id: int, end_date: date, now: datetime) -> bool:
        self._cur.execute(
            """
            UPDATE members
            SET plan_id=?, end_date=?, status='active', updated_at=?
            WHERE id=? AND status != 'suspended'
            """,
            (int(plan_id), format_date(end_date), format_datetime(now), int(member_id)),
        )
        return self._cur.rowcount > 0

    def set_status(self, *, member_id: int, status: MemberStatus, from_status: MemberStatus, now: datetime) -> bool:
        self._cur.execute(
            "UPDATE members SET status=?, updated_at=? WHERE id=? AND status=?",
            (status.value, format_datetime(now), int(member_id), from_status.value),
        )
        return self._cur.rowcount > 0

    def expire_overdue(self, *, today: date, now: datetime) -> int:
        # The WHERE clause alone protects suspended rows, even against concurrent suspends.
        self._cur.execute(
            """
            UPDATE members
            SET status='expired', updated_at=?
            WHERE status='active' AND end_date < ?
            """,
            (format_datetime(now), format_date(today)),
        )
        return int(self._cur.rowcount)

    def set_biometric_ref(self, *, member_id: int, biometric_ref: Optional[str], now: datetime) -> bool:
        self._cur.execute(
            "UPDATE members SET biometric_ref=?, updated_at=? WHERE id=?",
            (biometric_ref, format_datetime(now), int(member_id)),
        )
        return self._cur.rowcount > 0

    def active_seat_holder(self, seat_no: str) -> Optional[Member]:
        self._cur.execute(_SELECT + " WHERE m.seat_no=? AND m.status='active'", (seat_no,))
        r = fetchone(self._cur)
        return _to_member(r) if r else None

    def active_seat_numbers(self) -> Sequence[str]:
        self._cur.execute(
            "SELECT seat_no FROM members WHERE status='active' AND seat_no IS NOT NULL AND seat_no != ''"
        )
        return [r["seat_no"] for r in fetchall(self._cur)]

    def list_expiring(self, *, start: date, end: date) -> Sequence[Member]:
        self._cur.execute(
            _SELECT + " WHERE m.status='active' AND m.end_date BETWEEN ? AND ? ORDER BY m.end_date, m.id",
            (format_date(start), format_date(end)),
        )
        return [_to_member(r) for r in fetchall(self._cur)]
