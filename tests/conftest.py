"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any import that might load settings so
the suite never picks up a developer's .env file.
"""

import os
from unittest.mock import Mock

import pytest

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

os.environ.setdefault("RATE_LIMIT_STORE", "memory")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("LOG_FORMAT", "json")


@pytest.fixture
def clock() -> Mock:
    """Deterministic time source starting at epoch second 1000."""
    return Mock(return_value=1000.0)
