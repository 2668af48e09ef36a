from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Callable, Optional, Protocol

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)


_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")
_NUMERIC_ITEM = re.compile(r"(\*|\d+(?:-\d+)?)(?:/(\d+))?")


def _crontab_weekdays(field: str) -> str:
    """Rewrite crontab weekday numbers (Sunday=0 or 7) as APScheduler day names.

    APScheduler counts from Monday=0, so numeric items are expanded to explicit
    names; a range such as ``0-5`` cannot be kept as ``sun-fri``.
    """

    names = []
    for item in field.split(","):
        match = _NUMERIC_ITEM.fullmatch(item)
        if match is None or item == "*":
            names.append(item)
            continue
        base, step = match.group(1), int(match.group(2) or 1)
        if base == "*":
            start, end = 0, 6
        elif "-" in base:
            start, end = (int(part) for part in base.split("-"))
        else:
            start = int(base)
            end = 6 if match.group(2) else start
        if step < 1 or start > end or end > 7:
            raise ValueError(f"invalid day of week {item!r}")
        for number in range(start, end + 1, step):
            name = _WEEKDAYS[number % 7]
            if name not in names:
                names.append(name)
    return ",".join(names)


def parse_cron(expression: str, *, timezone: Optional[str] = None) -> CronTrigger:
    """Five-field crontab expression -> APScheduler trigger."""

    fields = str(expression or "").split()
    if len(fields) != 5:
        raise ValidationError(f"Invalid cron expression {expression!r}: expected 5 fields")
    minute, hour, day, month, day_of_week = fields
    try:
        return CronTrigger(
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=_crontab_weekdays(day_of_week),
            timezone=timezone,
        )
    except (ValueError, TypeError) as e:
        raise ValidationError(f"Invalid cron expression {expression!r}: {e}") from None


class Ticker(Protocol):
    """Fires registered callbacks on their cron schedules.

    A ticker is single-use: ``shutdown`` cancels every timer and the ticker is
    discarded afterwards.
    """

    def add(self, name: str, expression: str, callback: Callable[[], None]) -> None:
        raise NotImplementedError

    def start(self) -> None:
        raise NotImplementedError

    def shutdown(self) -> None:
        raise NotImplementedError

    def next_run(self, name: str) -> Optional[datetime]:
        raise NotImplementedError


class APSchedulerTicker:
    def __init__(self, *, timezone: Optional[str] = None, misfire_grace_seconds: int = 300):
        self._timezone = timezone
        self._misfire_grace_seconds = misfire_grace_seconds
        self._scheduler = BackgroundScheduler(timezone=timezone) if timezone else BackgroundScheduler()

    def add(self, name: str, expression: str, callback: Callable[[], None]) -> None:
        self._scheduler.add_job(
            callback,
            parse_cron(expression, timezone=self._timezone),
            id=name,
            name=name,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self._misfire_grace_seconds,
            replace_existing=True,
        )

    def start(self) -> None:
        self._scheduler.start()

    def shutdown(self) -> None:
        self._scheduler.remove_all_jobs()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=True)

    def next_run(self, name: str) -> Optional[datetime]:
        job = self._scheduler.get_job(name)
        return job.next_run_time if job else None
