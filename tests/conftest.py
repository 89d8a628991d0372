"""Central Pytest Fixtures for 4Eunoia.

Fixtures included:
- Time: fixed_now, clock
- Storage: memory_context, file_context, sample_context
- Records: make_task, make_log, sample_expenses
- AI: stub_gateway, failing_gateway, mock_genai, enabled_config, disabled_config
- Isolation: clean_environment (autouse)
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from eunoia.ai.gateway import StubGateway
from eunoia.config import AIConfig, AIMode, AppConfig, DataMode, reset_config
from eunoia.core.clock import FixedClock
from eunoia.core.models import Expense, LogEntry, Mood, Task, TaskStatus
from eunoia.core.sample_data import build_sample_store
from eunoia.core.storage import FileStore, MemoryStore, StorageContext

FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Helper Functions
# =============================================================================


def at(days: int = 0, hours: int = 0) -> datetime:
    """An instant relative to FIXED_NOW."""
    return FIXED_NOW + timedelta(days=days, hours=hours)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep real keys, env config and cached settings out of every test."""
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("EUNOIA_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("eunoia.config.keyring.get_password", lambda service, username: None)
    reset_config()
    yield
    reset_config()


# =============================================================================
# Time
# =============================================================================


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(FIXED_NOW)


# =============================================================================
# Storage
# =============================================================================


@pytest.fixture
def memory_context(clock) -> StorageContext:
    return StorageContext(store=MemoryStore(), mode=DataMode.USER, clock=clock)


@pytest.fixture
def file_context(tmp_path: Path, clock) -> StorageContext:
    return StorageContext(store=FileStore(tmp_path / "data"), mode=DataMode.USER, clock=clock)


@pytest.fixture(params=["memory", "file"])
def any_context(request, memory_context, file_context) -> StorageContext:
    """Run a test against both local store implementations."""
    return memory_context if request.param == "memory" else file_context


@pytest.fixture
def sample_context(clock) -> StorageContext:
    return StorageContext(store=build_sample_store(clock), mode=DataMode.SAMPLE, clock=clock)


# =============================================================================
# Records
# =============================================================================


@pytest.fixture
def make_task():
    def _make(title: str = "Task", status: TaskStatus = TaskStatus.PENDING, due_days: int | None = None, **kw):
        due = at(due_days) if due_days is not None else None
        return Task(title=title, status=status, due_date=due, created_at=kw.pop("created_at", at(-10)), **kw)

    return _make


@pytest.fixture
def make_log():
    def _make(days: int = 0, mood: Mood | None = None, diary: str | None = None, activity: str = "Work", **kw):
        return LogEntry(date=at(days), activity=activity, mood=mood, diary_entry=diary, **kw)

    return _make


@pytest.fixture
def sample_expenses() -> list[Expense]:
    """Food 75.50, Transport 55.00, Food 18.20 over March 1-3."""
    return [
        Expense(description="Groceries", amount=75.50, date=datetime(2024, 3, 1, 10, tzinfo=timezone.utc), category="Food"),
        Expense(description="Train pass", amount=55.00, date=datetime(2024, 3, 2, 8, tzinfo=timezone.utc), category="Transport"),
        Expense(description="Lunch", amount=18.20, date=datetime(2024, 3, 3, 13, tzinfo=timezone.utc), category="Food"),
    ]


# =============================================================================
# AI
# =============================================================================


@pytest.fixture
def stub_gateway() -> StubGateway:
    """A stub with no canned replies: every call raises ModelUnavailableError."""
    return StubGateway()


@pytest.fixture
def failing_gateway() -> StubGateway:
    return StubGateway(fail=True)


@pytest.fixture
def enabled_config() -> AppConfig:
    return AppConfig(ai=AIConfig(mode=AIMode.ENABLED, timeout_seconds=30))


@pytest.fixture
def disabled_config() -> AppConfig:
    return AppConfig(ai=AIConfig(mode=AIMode.DISABLED))


@pytest.fixture
def mock_genai_response():
    """Create a mock Gemini API response."""
    response = MagicMock()
    response.text = '{"summary": "ok"}'
    response.candidates = [MagicMock()]
    response.candidates[0].finish_reason.name = "STOP"
    response.usage_metadata.total_token_count = 150
    response.prompt_feedback.block_reason = None
    return response


@pytest.fixture
def mock_genai(mock_genai_response):
    """Patch the Gemini SDK as seen by the client module."""
    with patch("eunoia.ai.client.genai") as genai:
        model = MagicMock()
        model.generate_content.return_value = mock_genai_response
        genai.GenerativeModel.return_value = model
        yield genai
