"""Pytest configuration and shared fixtures."""
from pathlib import Path

import pytest

from rendercaps.capabilities import CapabilityRegistry
from rendercaps.logging_config import configure_logging

MEDIA_DIR = Path(__file__).parent / "media" / "CustomCapabilities"


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(scope="session", autouse=True)
def _logging():
    configure_logging(level="DEBUG", colors=False)


@pytest.fixture
def media_dir() -> Path:
    return MEDIA_DIR


@pytest.fixture
def loaded_registry(media_dir: Path) -> CapabilityRegistry:
    """Registry populated from the test media, cleared afterwards."""
    registry = CapabilityRegistry()
    registry.bulk_load(media_dir, "FileSystem", recursive=True)
    yield registry
    registry.clear()
