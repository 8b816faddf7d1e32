from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from minimal_metrics.adapters.clock import FixedClock
from minimal_metrics.adapters.sqlite.migrator import SQLiteMigrator
from minimal_metrics.adapters.sqlite_db import SQLiteAggregateRepo, SQLiteEventRepo
from minimal_metrics.api.main import create_app
from minimal_metrics.app_shell.context import AppContext
from minimal_metrics.core.entities import Event
from minimal_metrics.rules.loader import load_rules
from minimal_metrics.rules.models import Rules

ROOT = Path(__file__).resolve().parents[1]

# Sunday midday UTC; far enough from midnight that local-date rotation is stable
NOW = datetime(2026, 10, 18, 12, 30, tzinfo=UTC)


def to_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


# --- Fakes ---


class FakeTimer:
    """Single-shot timer that only fires when a test says so."""

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.callback()


class FakeTimerFactory:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]


# --- Fixtures ---


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to NOW."""
    return FixedClock(NOW)


@pytest.fixture
def now_ms(clock: FixedClock) -> int:
    return clock.now_ms()


@pytest.fixture
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Fresh, fully migrated SQLite database."""
    path = str(tmp_path / "metrics.db")
    SQLiteMigrator(path).run_migrations()
    return path


@pytest.fixture
def event_repo(db_path: str, clock: FixedClock) -> SQLiteEventRepo:
    return SQLiteEventRepo(db_path, clock=clock)


@pytest.fixture
def aggregate_repo(db_path: str) -> SQLiteAggregateRepo:
    return SQLiteAggregateRepo(db_path)


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory for valid events; any field can be overridden."""

    def _make(**overrides: Any) -> Event:
        fields: dict[str, Any] = {
            "timestamp": to_ms(NOW),
            "page_path": "/",
            "visitor_fingerprint": "a" * 16,
        }
        fields.update(overrides)
        return Event(**fields)

    return _make


@pytest.fixture
def rules() -> Rules:
    return load_rules(ROOT / "rules.yaml", environ={})


@pytest.fixture
def ctx(db_path: str, rules: Rules, clock: FixedClock, timers: FakeTimerFactory) -> AppContext:
    """Application context over a temp database with deterministic time and timers."""
    return AppContext.create(db_path, rules, clock=clock, timer_factory=timers, migrate=False)


@pytest.fixture
def client(ctx: AppContext) -> Iterator[TestClient]:
    app = create_app(context=ctx, start_schedulers=False)
    with TestClient(app) as test_client:
        yield test_client
