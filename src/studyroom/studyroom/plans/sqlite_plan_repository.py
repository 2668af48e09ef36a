from __future__ import annotations

import sqlite3
from typing import Optional, Sequence

from ..database.sqlite_base import fetchall, fetchone
from .model import Plan
from .repository import PlanRepository


def _to_plan(r: dict) -> Plan:
    return Plan(
        plan_id=int(r["id"]),
        name=r["name"],
        duration_days=int(r["duration_days"]),
        price=float(r["price"]),
        description=r.get("description"),
    )


class SQLitePlanRepository(PlanRepository):
    def __init__(self, cur: sqlite3.Cursor):
        self._cur = cur

    def get_by_id(self, plan_id: int) -> Optional[Plan]:
        self._cur.execute(
            "SELECT id, name, duration_days, price, description FROM membership_plans WHERE id=?",
            (int(plan_id),),
        )
        r = fetchone(self._cur)
        return _to_plan(r) if r else None

    def list_all(self) -> Sequence[Plan]:
        self._cur.execute(
            "SELECT id, name, duration_days, price, description FROM membership_plans ORDER BY duration_days, id"
        )
        return [_to_plan(r) for r in fetchall(self._cur)]

    def create(self, *, name: str, duration_days: int, price: float, description: Optional[str]) -> int:
        self._cur.execute(
            """
            INSERT INTO membership_plans(name, duration_days, price, description)
            VALUES(?,?,?,?)
            """,
            (name, int(duration_days), float(price), description),
        )
        return int(self._cur.lastrowid)

    def update(self, *, plan_id: int, name: str, duration_days: int, price: float, description: Optional[str]) -> bool:
        self._cur.execute(
            """
            UPDATE membership_plans
            SET name=?, duration_days=?, price=?, description=?
            WHERE id=?
            """,
            (name, int(duration_days), float(price), description, int(plan_id)),
        )
        return self._cur.rowcount > 0

    def delete(self, plan_id: int) -> bool:
        # Referenced plans fail here with a FOREIGN KEY error (no cascade).
        self._cur.execute("DELETE FROM membership_plans WHERE id=?", (int(plan_id),))
        return self._cur.rowcount > 0

    def count(self) -> int:
        self._cur.execute("SELECT COUNT(*) AS n FROM membership_plans")
        return int(fetchone(self._cur)["n"])
