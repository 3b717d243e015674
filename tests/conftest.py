"""Pytest fixtures for prepcoach tests."""

from __future__ import annotations

import tempfile
from datetime import date
from pathlib import Path

import pytest

from prepcoach.config.settings import EngineConfig
from prepcoach.db.connection import DatabaseConnection, set_db
from prepcoach.tracking.models import ClientProfile
from prepcoach.tracking.queries import ClientQueries
from prepcoach.tracking.service import SqliteClientRepository

TODAY = date(2026, 3, 28)


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    db = DatabaseConnection(db_path)
    db.initialize_schema()

    yield db

    # Cleanup
    db_path.unlink(missing_ok=True)


@pytest.fixture
def cli_db(temp_db):
    """Point the CLI's global database at the temporary database."""
    set_db(temp_db)
    yield temp_db
    set_db(None)


@pytest.fixture
def repo(temp_db):
    return SqliteClientRepository(temp_db)


@pytest.fixture
def engine_config():
    return EngineConfig()


@pytest.fixture
def sample_client(temp_db):
    """A male client on a cut with targets already set."""
    client = ClientProfile(
        client_id="c1",
        name="Alex",
        gender="male",
        goal_type="cut",
        calories_target=2400,
        protein_target=160,
        carbs_target=250,
        fat_target=70,
    )
    with temp_db.get_connection() as conn:
        ClientQueries.create_client(conn, client)
    return client
