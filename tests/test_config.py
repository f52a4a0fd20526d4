"""
Test configuration and utilities.
"""
import os
import pytest


class TestConfig:
    """Test configuration settings."""

    __test__ = False

    # Database settings
    TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

    # Concurrency test settings
    CONCURRENCY_SETTINGS = {
        "concurrent_writers": 8,
    }

    @classmethod
    def get_concurrency_setting(cls, setting: str) -> int:
        """Get concurrency test setting value."""
        return cls.CONCURRENCY_SETTINGS.get(setting)

    @classmethod
    def is_integration_test_enabled(cls) -> bool:
        """Check if integration tests should run."""
        return os.getenv("RUN_INTEGRATION_TESTS", "true").lower() == "true"


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests"
    )
    config.addinivalue_line(
        "markers", "slow: Slow running tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection based on environment settings."""
    skip_integration = pytest.mark.skip(reason="Integration tests disabled")

    for item in items:
        if "integration" in item.keywords and not TestConfig.is_integration_test_enabled():
            item.add_marker(skip_integration)
