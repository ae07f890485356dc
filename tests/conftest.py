"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from wangbot.config import WangbotConfig
from wangbot.database.models import Base


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Wangbot tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` inside ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def cfg() -> WangbotConfig:
    return WangbotConfig(bot_prefix="!", card_renderer="local")


@pytest.fixture
def client(db_engine: Engine):
    """FastAPI TestClient whose engine dependency points at the SQLite engine."""
    from fastapi.testclient import TestClient

    from wangbot.api.deps import get_engine
    from wangbot.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
