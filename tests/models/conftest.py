"""Pytest fixtures for model tests.

Provides reusable fixtures for database testing:
- test_engine: Clean SQLite file database for each test
- test_session: Database session with automatic rollback
- seeded_cities: Pre-populated atlas rows
"""

import os
import tempfile
from pathlib import Path

import pytest

from astro_chart_mcp.database import create_db_engine, create_tables, get_session_factory
from astro_chart_mcp.models import CITY_SEED_DATA, City


@pytest.fixture(scope="function")
def test_engine():
    """
    Create a fresh test database for each test function.

    Uses a temporary SQLite database that's deleted after the test.
    """
    fd, db_path = tempfile.mkstemp(suffix='.db')
    os.close(fd)

    engine = create_db_engine(Path(db_path), echo=False)
    create_tables(engine)

    yield engine

    engine.dispose()
    if Path(db_path).exists():
        os.unlink(db_path)


@pytest.fixture(scope="function")
def test_session(test_engine):
    """Database session, rolled back after each test."""
    SessionFactory = get_session_factory(test_engine)
    session = SessionFactory()

    yield session

    session.rollback()
    session.close()


@pytest.fixture(scope="function")
def seeded_cities(test_session):
    """Pre-populate the atlas; returns the created City instances."""
    cities = []
    for data in CITY_SEED_DATA:
        city = City(name_key=City.make_name_key(data["name"]), **data)
        test_session.add(city)
        cities.append(city)

    test_session.commit()

    return cities
