# Fixtures for tests that run against a real PostgreSQL database.
# Set TEST_DATABASE_URL to enable them; they are skipped otherwise.
# CI sets REQUIRE_TEST_DATABASE=1 so a missing database fails the run
# instead of silently skipping the trigger, cascade and uniqueness checks.
import os

import pytest

from db.connection import close_pool, get_connection, init_pool, release_connection
from db.init_db import create_tables, drop_tables
from services.forum_service import ForumService


def integration_dsn(env=os.environ):
    """
    Return the DSN for integration tests.

    Skips when TEST_DATABASE_URL is unset, or fails when
    REQUIRE_TEST_DATABASE is set as well.
    """
    dsn = env.get("TEST_DATABASE_URL")
    if dsn:
        return dsn
    if env.get("REQUIRE_TEST_DATABASE", "").lower() in ("1", "true", "yes"):
        pytest.fail("REQUIRE_TEST_DATABASE is set but TEST_DATABASE_URL is empty")
    pytest.skip("TEST_DATABASE_URL not set")


@pytest.fixture(scope="session")
def database():
    """Create a fresh forum schema for the test session."""
    init_pool(dsn=integration_dsn())
    drop_tables()
    create_tables()
    yield
    drop_tables()
    close_pool()


@pytest.fixture
def service(database):
    """ForumService over empty tables."""
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute("TRUNCATE votes, answers, questions;")
        conn.commit()
    finally:
        release_connection(conn)
    return ForumService()


@pytest.fixture
def run_sql(database):
    """Execute a statement and return all rows (if any)."""
    def _run(sql, params=None):
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall() if cur.description else None
            conn.commit()
            return rows
        finally:
            release_connection(conn)
    return _run
