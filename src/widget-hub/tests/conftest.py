"""Pytest configuration and shared fixtures for all tests.

This module provides:
- Test configuration and markers
- Shared fixtures for core services (event bus, communication service, catalog)
- Repository mocks
"""

import os
from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from _pytest.config import Config

from application.services import (
    CommunicationConfig,
    WidgetCommunicationService,
    WidgetComponentCatalog,
    WidgetEventBus,
    WidgetEvent,
    WidgetMetricsTracker,
)
from application.settings import app_settings

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config: Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (may use external services)")
    config.addinivalue_line("markers", "slow: Slow tests (may take several seconds)")
    config.addinivalue_line("markers", "asyncio: Async tests")
    config.addinivalue_line("markers", "repository: Repository layer tests")
    config.addinivalue_line("markers", "command: Command handler tests")
    config.addinivalue_line("markers", "query: Query handler tests")


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def event_bus() -> WidgetEventBus:
    """Provide an event bus without background tasks or cloudevent mirroring."""
    return WidgetEventBus()


@pytest.fixture
def published_events(event_bus: WidgetEventBus) -> list[WidgetEvent]:
    """Collect every event published on the bus."""
    events: list[WidgetEvent] = []
    event_bus.subscribe(["*"], events.append)
    return events


@pytest.fixture
def communication_config() -> CommunicationConfig:
    return CommunicationConfig()


@pytest.fixture
def communication_service(event_bus: WidgetEventBus, communication_config: CommunicationConfig) -> WidgetCommunicationService:
    """Provide a communication service with persistence disabled (no service provider)."""
    return WidgetCommunicationService(event_bus=event_bus, config=communication_config)


@pytest.fixture
def component_catalog() -> WidgetComponentCatalog:
    return WidgetComponentCatalog()


@pytest.fixture
def metrics_tracker() -> WidgetMetricsTracker:
    return WidgetMetricsTracker(history_size=100, persist_every=10)


# ============================================================================
# REPOSITORY FIXTURES
# ============================================================================


@pytest.fixture
def mock_repository() -> MagicMock:
    """Provide a mock repository for testing command/query handlers.

    Mocks repository methods for both:
    - Aggregate repositories (write model): add_async, update_async, remove_async, get_async
    - Query helpers: search_async, get_by_canvas_async, count_async
    """
    mock: MagicMock = MagicMock()
    mock.get_async = AsyncMock(return_value=None)
    mock.add_async = AsyncMock()
    mock.update_async = AsyncMock()
    mock.remove_async = AsyncMock(return_value=True)
    mock.contains_async = AsyncMock(return_value=False)
    mock.get_all_async = AsyncMock(return_value=[])
    mock.find_async = AsyncMock(return_value=[])
    mock.search_async = AsyncMock(return_value=([], 0))
    mock.get_by_canvas_async = AsyncMock(return_value=[])
    mock.count_async = AsyncMock(return_value=0)
    return mock


# ============================================================================
# TEST SETTINGS FIXTURES
# ============================================================================


@pytest.fixture
def test_settings() -> Any:
    """Provide test-specific application settings."""
    return app_settings


# ============================================================================
# CLEANUP FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def reset_environment() -> Generator[None, None, None]:
    """Reset environment variables after each test."""
    original_env: dict[str, str] = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
