"""Shared test configuration.

The database engine and settings are created at import time, so the
environment has to be in place before anything from ``wyzebank`` is
imported.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "wyzebank_activity_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["SESSION_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["ACTIVITY_STREAMS_PER_USER"] = "3"

from wyzebank.config import get_settings  # noqa: E402

get_settings.cache_clear()

from wyzebank.infrastructure.database import (  # noqa: E402
    Base,
    SessionLocal,
    engine,
    initialize_database,
)
from wyzebank.infrastructure.security import create_session_token  # noqa: E402


@pytest.fixture
def reset_database():
    """Start each database test from empty tables."""

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(reset_database):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_headers():
    """Return a factory of request headers carrying a valid session cookie."""

    def _build(user_id: int) -> dict[str, str]:
        token = create_session_token(user_id)
        return {"Cookie": f"{get_settings().session_cookie_name}={token}"}

    return _build


@pytest.fixture
def anyio_backend():
    """The notification stream is built on asyncio; run async tests there."""

    return "asyncio"
