"""
Pytest Configuration and Fixtures for the LifeQuest Test Suite
==============================================================

Purpose
-------
Centralized fixtures for the LifeQuest test suite: environment isolation,
tunable configuration, domain factories, stores and mocks.

Responsibilities
----------------
- Point ENVIRONMENT/DATA_DIR/LOGS_DIR at a throwaway directory before any
  LifeQuest module is imported
- Reset ConfigManager between tests (built-in defaults, no YAML)
- Dashboard / service factories for unit tests
- Testcontainers PostgreSQL for the document store integration tests

Architecture Notes
------------------
- Unit tests use mocks and ``tmp_path`` (fast, isolated)
- Integration tests use testcontainers (real PostgreSQL) and are
  deselected by default (``-m integration`` to run them)
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator, Generator

# Must happen before Config is imported: it validates on import.
_SANDBOX = Path(tempfile.mkdtemp(prefix="lifequest-tests-"))
os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["DATA_DIR"] = str(_SANDBOX / "data")
os.environ["LOGS_DIR"] = str(_SANDBOX / "logs")
os.environ["CONFIG_DIR"] = str(_SANDBOX / "config")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from lifequest.core.config.config import Config  # noqa: E402
from lifequest.core.config.manager import ConfigManager  # noqa: E402
from lifequest.core.logging.logger import get_logger  # noqa: E402
from lifequest.domain.models import Dashboard  # noqa: E402
from lifequest.modules.persistence import LocalSnapshotStore  # noqa: E402
from lifequest.modules.progression import ProgressionService  # noqa: E402

logger = get_logger(__name__)

PROJECT_CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    Config.reload()


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def config_manager(tmp_path_factory) -> Generator[type[ConfigManager], None, None]:
    """
    ConfigManager with built-in defaults only.

    Scope: function (overrides never leak between tests)
    """
    ConfigManager.reset()
    ConfigManager.initialize(config_dir=tmp_path_factory.mktemp("config"))
    yield ConfigManager
    ConfigManager.reset()


@pytest.fixture
def project_config_dir() -> Path:
    """The repository's shipped YAML tunables."""
    return PROJECT_CONFIG_DIR


# ============================================================================
# DOMAIN FIXTURES
# ============================================================================


@pytest.fixture
def dashboard() -> Dashboard:
    """Fresh level-1 dashboard, marked clean."""
    board = Dashboard.new("user-1", "Tester")
    board.mark_clean()
    return board


@pytest.fixture
def progression(dashboard, config_manager) -> ProgressionService:
    return ProgressionService(dashboard, config_manager)


# ============================================================================
# STORE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def local_store(tmp_path) -> AsyncGenerator[LocalSnapshotStore, None]:
    store = LocalSnapshotStore(tmp_path)
    await store.connect()
    yield store
    await store.close()


@pytest.fixture
def mock_store(mocker):
    """
    Mock SnapshotStore for gateway unit tests.

    Scope: function
    """
    store = mocker.MagicMock()
    store.name = "mock"
    store.connect = mocker.AsyncMock()
    store.close = mocker.AsyncMock()
    store.load = mocker.AsyncMock(return_value=None)
    store.save = mocker.AsyncMock()
    store.delete = mocker.AsyncMock(return_value=True)
    return store


# ============================================================================
# TESTCONTAINERS FIXTURES (Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def postgres_container():
    """
    Start PostgreSQL testcontainer for integration tests.

    Scope: session (container persists across all tests)
    """
    from testcontainers.postgres import PostgresContainer

    logger.info("Starting PostgreSQL testcontainer...")
    container = PostgresContainer(image="postgres:17-alpine", driver="asyncpg")
    container.start()

    yield container

    logger.info("Stopping PostgreSQL testcontainer...")
    container.stop()


@pytest.fixture(scope="session")
def postgres_url(postgres_container) -> str:
    return postgres_container.get_connection_url()

