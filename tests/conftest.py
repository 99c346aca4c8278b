"""
Global test configuration and fixtures.

This module contains only global fixtures that are shared across all test types.
Test-specific fixtures are located in their respective conftest.py files:
- tests/unit/conftest.py - Unit test fixtures with SQLite + mocks
- tests/integration/conftest.py - Worker task fixtures with SQLite
- tests/e2e/conftest.py - E2E test fixtures with FastAPI over httpx
"""

from datetime import datetime, timezone

import pytest

from app.core.config import Settings


# Global sample data fixtures (no database dependencies)
@pytest.fixture
def sample_room_data():
    """Standard room creation data for API testing."""
    return {
        "name": "Night Shift Support",
        "founder": "founder",
        "initial_members": ["member_1", "member_2", "member_3", "member_4", "member_5"],
    }


@pytest.fixture
def sample_post_data():
    """Standard post data for API testing."""
    return {
        "author_pseudo": "founder",
        "title": "Rough week",
        "content": "Could use some encouragement today",
    }


@pytest.fixture
def now():
    """Fixed reference time for time-dependent tests."""
    return datetime(2025, 2, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def test_settings():
    """Settings with the documented default thresholds, independent of the environment."""
    return Settings(
        _env_file=None,
        room_min_members=6,
        room_activation_members=10,
        activity_window_hours=72,
        activity_min_unique_posters=4,
        post_default_lifetime_days=30,
        sweep_active_reply_threshold=10,
        sweep_reply_window_hours=1,
        sweep_extension_days=1,
        sweep_batch_size=100,
        sweep_max_posts_per_run=1000,
        expiring_notice_days=3,
    )


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests with mocked dependencies (fast)"
    )
    config.addinivalue_line(
        "markers", "integration: Worker task tests with a real database session (medium)"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests with full API (slow)"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "e2e" in str(item.fspath):
            item.add_marker(pytest.mark.e2e)
