from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Plan:
    """A membership plan: how many days a payment of ``price`` buys."""

    plan_id: int
    name: str
    duration_days: int
    price: float
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.plan_id,
            "name": self.name,
            "duration_days": self.duration_days,
            "price": self.price,
            "description": self.description,
        }
