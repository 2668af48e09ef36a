from __future__ import annotations

from datetime import datetime
from typing import Dict, Mapping, Optional, Protocol


class SettingsRepository(Protocol):
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def get_all(self) -> Dict[str, Optional[str]]:
        raise NotImplementedError

    def upsert_many(self, values: Mapping[str, str], *, now: datetime) -> int:
        raise NotImplementedError

    def insert_default(self, key: str, value: str, description: Optional[str] = None) -> bool:
        """Insert only when the key is absent; operator edits always win."""

        raise NotImplementedError
