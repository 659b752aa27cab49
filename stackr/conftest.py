# stackr/conftest.py
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root to PYTHONPATH
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(scope="function", autouse=True)
def reset_challenge_store():
    """
    Clear the route-level singleton between tests.

    Each test should start with a clean slate.
    """
    from stackr.features.challenges.service import challenge_service

    challenge_service.reset()
    yield
    challenge_service.reset()


@pytest.fixture
def start():
    """Fixed generation instant shared by engine tests."""
    return datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def sqlite_db():
    """
    Point the database layer at a fresh in-memory SQLite DB.

    Tears the engine down afterwards so other tests are unaffected.
    """
    from stackr.core import database

    database.dispose_engine()
    database.init_engine("sqlite://")
    database.create_all_tables()
    yield database
    database.drop_all_tables()
    database.dispose_engine()
