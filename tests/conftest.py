# Shared pytest fixtures for unit and integration tests
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

# Modules that borrow connections from the pool
_DB_MODULES = (
    "repositories.question_repo",
    "repositories.answer_repo",
    "repositories.vote_repo",
    "db.init_db",
)

QUESTION_ID = "6f1c2b9e-3d4a-4e5f-8a7b-1c2d3e4f5a6b"
OTHER_QUESTION_ID = "0b8e7f6d-5c4b-4a39-8271-605f4e3d2c1b"
ANSWER_ID = "9a8b7c6d-5e4f-4a3b-9c2d-1e0f9a8b7c6d"
VOTE_ID = "1d2c3b4a-5f6e-4d7c-8b9a-0f1e2d3c4b5a"


@pytest.fixture
def now():
    """A fixed timezone-aware timestamp."""
    return datetime(2024, 11, 14, 19, 28, 47, tzinfo=timezone.utc)


@pytest.fixture
def mock_db():
    """
    Patch the connection pool in every data-access module.

    Yields a namespace with the fake connection and its cursor so tests
    can script `fetchone`/`fetchall`/`rowcount` and inspect `execute`.
    """
    cursor = MagicMock()
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    release = MagicMock()

    patchers = []
    for module in _DB_MODULES:
        patchers.append(patch(f"{module}.get_connection", return_value=conn))
        patchers.append(patch(f"{module}.release_connection", release))
    for p in patchers:
        p.start()
    try:
        yield SimpleNamespace(conn=conn, cursor=cursor, release=release)
    finally:
        for p in reversed(patchers):
            p.stop()
