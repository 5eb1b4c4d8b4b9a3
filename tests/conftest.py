"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
For standard test utilities, see tests/__init__.py
"""

import os
import pytest


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as requiring PostgreSQL (deselect with '-m \"not db\"')"
    )


@pytest.fixture(scope="session")
def test_database():
    """
    Session-scoped fixture that manages the PostgreSQL test container.

    Uses testcontainers to start PostgreSQL before the db tests and stops it
    after they complete. Uses TEST_DATABASE_URL instead when it is set.
    """
    from sqlalchemy import create_engine
    from database.models import Base

    from tests import SKIP_DB_TESTS
    if SKIP_DB_TESTS:
        pytest.skip("SKIP_DB_TESTS is set")

    external_url = os.environ.get("TEST_DATABASE_URL")
    if external_url:
        engine = create_engine(external_url)
        Base.metadata.create_all(engine)
        yield external_url
        engine.dispose()
        return

    try:
        from testcontainers.postgres import PostgresContainer

        postgres = PostgresContainer(
            image="postgres:16-alpine",
            username="testuser",
            password="testpass",
            dbname="jobmatch_test",
        )
        postgres.start()
    except Exception as e:
        pytest.skip(f"Could not start test database container: {e}")

    db_url = postgres.get_connection_url()
    engine = create_engine(db_url)
    Base.metadata.create_all(engine)
    print(f"\n✓ Test database started: {db_url}")

    yield db_url

    engine.dispose()
    postgres.stop()
    print("\n✓ Test database stopped")


@pytest.fixture(scope="session")
def test_db_url(test_database):
    """Get test database URL."""
    return test_database
