from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Plan


class PlanRepository(Protocol):
    def get_by_id(self, plan_id: int) -> Optional[Plan]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Plan]:
        raise NotImplementedError

    def create(self, *, name: str, duration_days: int, price: float, description: Optional[str]) -> int:
        raise NotImplementedError

    def update(self, *, plan_id: int, name: str, duration_days: int, price: float, description: Optional[str]) -> bool:
        raise NotImplementedError

    def delete(self, plan_id: int) -> bool:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError
