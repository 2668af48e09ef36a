from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, Mapping, Optional

from ..common.datetime_utils import now_local
from ..core.exceptions import ValidationError
from ..database.store import LedgerStore
from .repository import SettingsRepository

logger = logging.getLogger(__name__)


def int_setting(settings: SettingsRepository, key: str, default: int) -> int:
    raw = settings.get(key)
    try:
        return int(str(raw).strip()) if raw not in (None, "") else int(default)
    except ValueError:
        logger.warning("Setting %s=%r is not a number; using %s", key, raw, default)
        return int(default)


def bool_setting(settings: SettingsRepository, key: str, default: bool) -> bool:
    raw = settings.get(key)
    if raw in (None, ""):
        return default
    return str(raw).strip().lower() not in ("0", "false", "no", "off")


class SettingsService:
    def __init__(self, store: LedgerStore, *, clock: Callable[[], datetime] = now_local):
        self._store = store
        self._clock = clock

    def get_all(self) -> Dict[str, Optional[str]]:
        with self._store.read() as ledger:
            return ledger.settings.get_all()

    def update(self, values: Mapping[str, object]) -> Dict[str, Optional[str]]:
        if not isinstance(values, Mapping) or not values:
            raise ValidationError("No settings to update")
        cleaned: dict[str, str] = {}
        for key, value in values.items():
            key = str(key).strip()
            if not key:
                raise ValidationError("Setting key is required")
            cleaned[key] = "" if value is None else str(value)

        with self._store.transaction() as ledger:
            ledger.settings.upsert_many(cleaned, now=self._clock())
            return ledger.settings.get_all()

    def get_int(self, key: str, default: int) -> int:
        with self._store.read() as ledger:
            return int_setting(ledger.settings, key, default)

    def get_bool(self, key: str, default: bool) -> bool:
        with self._store.read() as ledger:
            return bool_setting(ledger.settings, key, default)
