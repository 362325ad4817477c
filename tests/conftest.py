"""
Pytest configuration and fixtures for PaymentFlow.

- Isolated environment and storage directory per test.
- A controllable clock for notification expiry.
- Ready-made engines over the default workflow.
"""

from pathlib import Path
from typing import Generator

import pytest

from paymentflow.builder.editing_engine import EditingEngine
from paymentflow.builder.notifications import NotificationCenter
from paymentflow.builder.storage import MemoryStorage
from paymentflow.settings import get_settings

# --- Core Fixtures ---

@pytest.fixture(scope="session")
def test_root_dir() -> Path:
    """
    Returns the root directory of the test suite.
    """
    return Path(__file__).parent.resolve()

@pytest.fixture
def temp_work_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Provides a temporary working directory for tests.
    """
    yield tmp_path

@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch, temp_work_dir: Path) -> Generator[Path, None, None]:
    """
    Isolates environment variables and working directory for each test.
    Yields the storage directory the settings point at.
    """
    storage_dir = temp_work_dir / "storage"
    monkeypatch.chdir(temp_work_dir)
    for key in ("PAYMENTFLOW_STORAGE_SLOT", "PAYMENTFLOW_HISTORY_LIMIT", "PAYMENTFLOW_NOTIFICATION_TTL",
                "PAYMENTFLOW_VIEWPORT_WIDTH", "PAYMENTFLOW_VIEWPORT_HEIGHT", "PAYMENTFLOW_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PAYMENTFLOW_TEST_MODE", "1")
    monkeypatch.setenv("PAYMENTFLOW_STORAGE_DIR", str(storage_dir))
    get_settings.cache_clear()
    yield storage_dir
    get_settings.cache_clear()

@pytest.fixture
def cli_runner() -> "CliRunner":
    """
    Provides a runner for invoking CLI entry points in tests.
    """
    from typer.testing import CliRunner
    return CliRunner()

# --- Engine Fixtures ---

class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()

@pytest.fixture
def engine(clock: FakeClock, storage: MemoryStorage) -> EditingEngine:
    """Default workflow with an in-memory slot and a fake clock."""
    return EditingEngine.with_default_workflow(
        storage=storage,
        notifications=NotificationCenter(ttl=5.0, clock=clock),
    )

@pytest.fixture
def empty_engine(clock: FakeClock, storage: MemoryStorage) -> EditingEngine:
    return EditingEngine(storage=storage, notifications=NotificationCenter(ttl=5.0, clock=clock))
