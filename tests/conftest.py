"""Root conftest — shared test configuration and database fixtures.

Invariants:
    - Every test gets a fresh in-memory SQLite database (StaticPool, one connection)
    - user / contact tables created before each test, dropped after
    - Settings never read a developer's .env database

Design Decisions:
    - SQLite in-memory: fast, no external dependency, AUTOINCREMENT-style integer
      primary keys give last_insert_id for free
"""

import os

import pytest

from recordkit.infrastructure.database import SqlExecutor

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FORMAT", "text")


@pytest.fixture
def executor():
    executor = SqlExecutor.from_url("sqlite://")
    yield executor
    executor.dispose()


@pytest.fixture
def db(executor):
    """Executor with the user/contact schema in place."""
    executor.execute(
        "CREATE TABLE IF NOT EXISTS user ("
        " id INTEGER PRIMARY KEY,"
        " name TEXT,"
        " password TEXT"
        ")"
    )
    executor.execute(
        "CREATE TABLE IF NOT EXISTS contact ("
        " id INTEGER PRIMARY KEY,"
        " user_id INTEGER,"
        " email TEXT,"
        " address TEXT"
        ")"
    )
    yield executor
    executor.execute("DROP TABLE IF EXISTS contact")
    executor.execute("DROP TABLE IF EXISTS user")
