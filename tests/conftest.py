"""
Pytest configuration for rating history tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from rating_history.storage import init_rating_store


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: marks tests that call the real chess.com API"
    )


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-live", action="store_true", default=False, help="Run live API tests"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live API tests unless --run-live is specified."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="Need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture
def store():
    """In-memory rating store."""
    conn = init_rating_store(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def sleeps(monkeypatch):
    """Record sleep durations instead of sleeping."""
    recorded = []
    monkeypatch.setattr("rating_history.games.time.sleep", lambda seconds: recorded.append(seconds))
    return recorded
