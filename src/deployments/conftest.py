# src/deployments/conftest.py
"""
Pytest configuration and shared fixtures.

Tests are co-located with implementation files using the *_test.py suffix.
Integration tests need a live PostgreSQL at DATABASE_URL and are skipped
when it cannot be reached.
"""

import os

# Set environment BEFORE importing any app modules
os.environ["DEPLOYMENTS_ENV"] = "test"

from contextlib import contextmanager
from datetime import datetime, timezone
from unittest.mock import MagicMock

import psycopg
import pytest
from psycopg import sql

from deployments import db
from deployments.config import config
from deployments.images import SoftwareImage, SoftwareImageConstructor, SoftwareImagesStorage
from deployments.images.indexes import ensure_indexes, images_table

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_db():
    """
    Provision the images collection once per test session.

    Skips every dependent test when the database is unreachable, unless
    DEPLOYMENTS_REQUIRE_DB is set (as in CI), in which case it fails.
    """
    try:
        conn = psycopg.connect(config.database_url, connect_timeout=3)
    except psycopg.OperationalError as e:
        if os.environ.get("DEPLOYMENTS_REQUIRE_DB"):
            pytest.fail(f"PostgreSQL required but not available: {e}")
        pytest.skip(f"PostgreSQL not available: {e}")

    with conn:
        ensure_indexes(conn)

    yield config.database_url


@pytest.fixture
def db_connection(test_db):
    """
    Provide a database connection with transaction rollback.

    Each test runs in a transaction that is rolled back at the end,
    ensuring tests don't affect each other.
    """
    conn = psycopg.connect(test_db)

    # Clean slate: truncate the images table before each test
    with conn.cursor() as cur:
        cur.execute(sql.SQL("TRUNCATE {}").format(images_table()))
    conn.commit()

    # Override the db module to use this connection
    db.set_connection_override(conn)

    yield conn

    # Rollback any changes made during the test
    conn.rollback()
    db.clear_connection_override()
    conn.close()


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def image_storage(db_connection):
    """Provide a SoftwareImagesStorage bound to the test connection."""
    return SoftwareImagesStorage()


@pytest.fixture
def mock_connection():
    """
    Provide a MagicMock connection and a factory handing it out.

    The factory counts how many times a connection was acquired and
    released so tests can check scoping without a database.
    """
    conn = MagicMock()
    cursor = conn.cursor.return_value.__enter__.return_value
    calls = {"acquired": 0, "released": 0}

    @contextmanager
    def connect():
        calls["acquired"] += 1
        try:
            yield conn
        finally:
            calls["released"] += 1

    return {"connection": conn, "cursor": cursor, "connect": connect, "calls": calls}


@pytest.fixture
def mock_storage(mock_connection) -> SoftwareImagesStorage:
    """Provide a SoftwareImagesStorage over the mock connection."""
    return SoftwareImagesStorage(connect=mock_connection["connect"])


# =============================================================================
# Seed Data Fixtures
# =============================================================================


def _make_image(name="app-1.0", model="raspberrypi3", **kwargs) -> SoftwareImage:
    """Helper to build an unsaved image."""
    return SoftwareImage(
        constructor=SoftwareImageConstructor(name=name, model=model, **kwargs)
    )


@pytest.fixture
def sample_image(image_storage) -> SoftwareImage:
    """Create a single stored image."""
    image = _make_image(description="Test image", checksum="abc123")
    image_storage.insert(image)
    return image


@pytest.fixture
def stored_document() -> dict:
    """A document as it is read back from the images table."""
    return {
        "softwareimageconstructor": {
            "name": "app-1.0",
            "model": "raspberrypi3",
            "description": "Test image",
            "checksum": None,
        },
        "verified": True,
        "modified": datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc).isoformat(),
    }
