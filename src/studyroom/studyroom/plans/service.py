from __future__ import annotations

from typing import Mapping, Optional, Sequence

from ..common.validators import optional_text, require_amount, require_non_empty, require_positive_int
from ..core.exceptions import ConflictError, NotFoundError
from ..database.store import LedgerStore
from .model import Plan


class PlanService:
    def __init__(self, store: LedgerStore):
        self._store = store

    def list_plans(self) -> Sequence[Plan]:
        with self._store.read() as ledger:
            return ledger.plans.list_all()

    def get_plan(self, plan_id: int) -> Plan:
        plan_id = require_positive_int(plan_id, "Plan")
        with self._store.read() as ledger:
            plan = ledger.plans.get_by_id(plan_id)
        if not plan:
            raise NotFoundError("Plan not found")
        return plan

    def add_plan(self, data: Mapping[str, object]) -> Plan:
        name, duration_days, price, description = self._clean(data)
        with self._store.transaction() as ledger:
            plan_id = ledger.plans.create(name=name, duration_days=duration_days, price=price, description=description)
            return ledger.plans.get_by_id(plan_id)

    def update_plan(self, plan_id: int, data: Mapping[str, object]) -> Plan:
        plan_id = require_positive_int(plan_id, "Plan")
        # Existing payments keep their recorded amount; only future renewals see the change.
        name, duration_days, price, description = self._clean(data)
        with self._store.transaction() as ledger:
            if not ledger.plans.update(
                plan_id=plan_id, name=name, duration_days=duration_days, price=price, description=description
            ):
                raise NotFoundError("Plan not found")
            return ledger.plans.get_by_id(plan_id)

    def delete_plan(self, plan_id: int) -> None:
        plan_id = require_positive_int(plan_id, "Plan")
        try:
            with self._store.transaction() as ledger:
                if not ledger.plans.delete(plan_id):
                    raise NotFoundError("Plan not found")
        except ConflictError:
            raise ConflictError("Plan is in use by members or payments and cannot be deleted") from None

    @staticmethod
    def _clean(data: Mapping[str, object]) -> tuple[str, int, float, Optional[str]]:
        name = require_non_empty(data.get("name"), "Plan name")
        duration = require_positive_int(data.get("duration_days", data.get("durationDays")), "Duration (days)")
        price = require_amount(data.get("price"), "Price")
        return name, duration, price, optional_text(data.get("description"))
