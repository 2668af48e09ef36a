from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

import pytest

from src.studyroom.studyroom.app_settings import AppSettings
from src.studyroom.studyroom.container import build_container
from src.studyroom.studyroom.core.enums import NotificationChannel
from src.studyroom.studyroom.main import create_app, get_container, prepare_database
from src.studyroom.studyroom.notifications.model import OutgoingMessage
from src.studyroom.studyroom.scheduler.tickers import parse_cron

BRIDGE_TOKEN = "secret-token"


class MutableClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, *args) -> None:
        self.now = datetime(*args)

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingSender:
    """Captures messages; members listed in ``fail_for`` raise instead."""

    channels = frozenset({NotificationChannel.EMAIL, NotificationChannel.SMS, NotificationChannel.WHATSAPP})

    def __init__(self):
        self.sent: List[OutgoingMessage] = []
        self.fail_for: set = set()

    def send(self, message: OutgoingMessage) -> None:
        if message.member_id in self.fail_for:
            raise ConnectionError("mail server unreachable")
        self.sent.append(message)


class FakeTicker:
    """Deterministic ticker: jobs fire only when a test calls ``fire``."""

    def __init__(self):
        self.jobs: Dict[str, Callable[[], None]] = {}
        self.schedules: Dict[str, str] = {}
        self.started = False
        self.shut_down = False

    def add(self, name: str, expression: str, callback: Callable[[], None]) -> None:
        parse_cron(expression)
        self.jobs[name] = callback
        self.schedules[name] = expression

    def start(self) -> None:
        self.started = True

    def shutdown(self) -> None:
        self.jobs.clear()
        self.shut_down = True

    def next_run(self, name: str) -> Optional[datetime]:
        return datetime(2024, 1, 2, 0, 0, 0) if name in self.jobs else None

    def fire(self, name: str) -> None:
        if self.started and not self.shut_down and name in self.jobs:
            self.jobs[name]()


class TickerFactory:
    def __init__(self):
        self.created: List[FakeTicker] = []

    def __call__(self) -> FakeTicker:
        ticker = FakeTicker()
        self.created.append(ticker)
        return ticker

    @property
    def current(self) -> FakeTicker:
        return self.created[-1]


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 1, 1, 9, 0, 0)


@pytest.fixture
def clock(fixed_now) -> MutableClock:
    return MutableClock(fixed_now)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def tickers() -> TickerFactory:
    return TickerFactory()


@pytest.fixture
def app_settings(tmp_path) -> AppSettings:
    return AppSettings(
        db_path=tmp_path / "studyroom.db",
        backup_dir=tmp_path / "backups",
        bridge_token=BRIDGE_TOKEN,
        backup_retention=3,
        testing=True,
        log_level="WARNING",
    )


@pytest.fixture
def container(app_settings, clock, sender, tickers):
    c = build_container(app_settings, clock=clock, sender=sender, ticker_factory=tickers)
    prepare_database(c)
    yield c
    c.scheduler_service.stop()


@pytest.fixture
def store(container):
    return container.store


@pytest.fixture
def app(app_settings, clock, sender, tickers):
    flask_app = create_app(app_settings, clock=clock, sender=sender, ticker_factory=tickers)
    yield flask_app
    get_container(flask_app).scheduler_service.stop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def monthly_plan_id(container) -> int:
    return next(p.plan_id for p in container.plan_service.list_plans() if p.name == "Monthly")


@pytest.fixture
def enroll(container, monthly_plan_id):
    """Enroll a member on the Monthly plan (30 days) and return the Member."""

    counter = {"n": 0}

    def _enroll(name: Optional[str] = None, *, plan_id: Optional[int] = None, **fields):
        counter["n"] += 1
        data = {"name": name or f"Member {counter['n']}", "phone": f"98000000{counter['n']:02d}"}
        data.update(fields)
        return container.membership_service.enroll(data, plan_id or monthly_plan_id).member

    return _enroll
