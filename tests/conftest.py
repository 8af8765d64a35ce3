"""Pytest configuration and shared fixtures for touchrelay tests

This module provides common fixtures and test utilities used across
the unit tests.
"""

import pytest
import logging
from pathlib import Path
from typing import Generator

from touchrelay.common.config import Config, ConfigLoader
from touchrelay.common.settings import settings


@pytest.fixture
def sample_config() -> Config:
    """Load sample configuration for testing

    Returns:
        Config object with the repository's config.yml values
    """
    config_path = Path(__file__).parent.parent / "config.yml"
    if not config_path.exists():
        pytest.skip("config.yml not found - required for this test")
    return ConfigLoader.config_load(config_path)


@pytest.fixture
def reset_settings() -> Generator[None, None, None]:
    """Reset settings singleton between tests

    This fixture ensures each test starts without a loaded config.
    """
    settings._config = None
    yield
    settings._config = None


@pytest.fixture(autouse=True)
def setup_logging(caplog):
    """Setup logging for tests"""
    caplog.set_level(logging.DEBUG)
