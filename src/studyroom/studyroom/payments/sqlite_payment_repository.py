from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import format_date, format_datetime, parse_datetime
from ..core.enums import PaymentMode
from ..database.sqlite_base import fetchall, fetchone
from .model import Payment, PaymentFilter
from .repository import PaymentRepository

_SELECT = """
    SELECT p.id, p.member_id, p.amount, p.mode, p.plan_id, p.note, p.receipt_number,
           p.paid_at, p.created_by, m.name AS member_name, mp.name AS plan_name
    FROM payments p
    JOIN members m ON m.id = p.member_id
    LEFT JOIN membership_plans mp ON mp.id = p.plan_id
"""


def _to_payment(r: dict) -> Payment:
    return Payment(
        payment_id=int(r["id"]),
        member_id=int(r["member_id"]),
        amount=float(r["amount"]),
        mode=PaymentMode(r["mode"]),
        receipt_number=r["receipt_number"],
        paid_at=parse_datetime(r["paid_at"]),
        plan_id=int(r["plan_id"]) if r.get("plan_id") is not None else None,
        note=r.get("note"),
        created_by=r.get("created_by"),
        member_name=r.get("member_name"),
        plan_name=r.get("plan_name"),
    )


class SQLitePaymentRepository(PaymentRepository):
    def __init__(self, cur: sqlite3.Cursor):
        self._cur = cur

    def insert(
        self,
        *,
        member_id: int,
        amount: float,
        mode: PaymentMode,
        receipt_number: str,
        paid_at: datetime,
        plan_id: Optional[int] = None,
        note: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> int:
        self._cur.execute(
            """
            INSERT INTO payments(member_id, amount, mode, plan_id, note, receipt_number, paid_at, created_by)
            VALUES(?,?,?,?,?,?,?,?)
            """,
            (
                int(member_id),
                float(amount),
                mode.value,
                plan_id,
                note,
                receipt_number,
                format_datetime(paid_at),
                created_by,
            ),
        )
        return int(self._cur.lastrowid)

    def get_by_id(self, payment_id: int) -> Optional[Payment]:
        self._cur.execute(_SELECT + " WHERE p.id=?", (int(payment_id),))
        r = fetchone(self._cur)
        return _to_payment(r) if r else None

    def find(self, criteria: PaymentFilter) -> Sequence[Payment]:
        clauses = ["1=1"]
        params: list[object] = []

        if criteria.member_id is not None:
            clauses.append("p.member_id=?")
            params.append(int(criteria.member_id))
        if criteria.search:
            clauses.append("(m.name LIKE ? OR m.email LIKE ? OR m.phone LIKE ? OR p.receipt_number LIKE ?)")
            term = f"%{criteria.search}%"
            params.extend([term, term, term, term])
        if criteria.mode is not None:
            clauses.append("p.mode=?")
            params.append(criteria.mode.value)
        if criteria.date_from is not None:
            clauses.append("date(p.paid_at) >= ?")
            params.append(format_date(criteria.date_from))
        if criteria.date_to is not None:
            clauses.append("date(p.paid_at) <= ?")
            params.append(format_date(criteria.date_to))
        if criteria.plan_id is not None:
            clauses.append("p.plan_id=?")
            params.append(int(criteria.plan_id))

        self._cur.execute(
            _SELECT + f" WHERE {' AND '.join(clauses)} ORDER BY p.paid_at DESC, p.id DESC",
            tuple(params),
        )
        return [_to_payment(r) for r in fetchall(self._cur)]

    def count_for_member(self, member_id: int) -> int:
        self._cur.execute("SELECT COUNT(*) AS n FROM payments WHERE member_id=?", (int(member_id),))
        return int(fetchone(self._cur)["n"])
