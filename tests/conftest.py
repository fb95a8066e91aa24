"""Shared fixtures."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from compadre import conversation_logger
from compadre import logging as compadre_logging
from compadre.conversation_logger import ConversationLogger
from compadre.logging import JSONLLogger
from compadre.memory import ConversationHistory, UserDataService
from compadre.session import SessionConfig, SessionManager
from compadre.store import KitchenStore

CANONICAL_ID = "123e4567-e89b-42d3-a456-426614174000"


class FakeClock:
    """Settable clock for recency and expiry checks."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def canonical_id() -> str:
    return CANONICAL_ID


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(tmp_path: Path) -> KitchenStore:
    """KitchenStore backed by a temporary database."""
    store = KitchenStore(tmp_path / "kitchen.db")
    store.init_db()
    yield store
    store.close()


@pytest.fixture
def sessions() -> SessionManager:
    return SessionManager(SessionConfig(max_turns=20))


@pytest.fixture
def data(store: KitchenStore, sessions: SessionManager, clock: FakeClock) -> UserDataService:
    return UserDataService(store, sessions, clock=clock)


@pytest.fixture
def history(data: UserDataService) -> ConversationHistory:
    return ConversationHistory(data, limit=20)


@pytest.fixture
def conv_logger(tmp_path: Path) -> ConversationLogger:
    return ConversationLogger(log_dir=tmp_path / "conversations")


@pytest.fixture
def event_logger(tmp_path: Path) -> JSONLLogger:
    return JSONLLogger(log_dir=tmp_path / "logs")


@pytest.fixture(autouse=True)
def isolated_global_loggers(tmp_path: Path, monkeypatch):
    """Keep the process-wide loggers out of the home directory."""
    monkeypatch.setattr(compadre_logging, "_logger", JSONLLogger(log_dir=tmp_path / "global-logs"))
    monkeypatch.setattr(
        conversation_logger,
        "_conversation_logger",
        ConversationLogger(log_dir=tmp_path / "global-conversations"),
    )
