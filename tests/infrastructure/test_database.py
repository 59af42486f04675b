"""SQL Executor — SQLAlchemy-backed DataSource against in-memory SQLite.

Tests cover:
    - SELECT rows materialized as dicts, INSERT exposes last_insert_id, UPDATE rowcount
    - Driver errors propagate unmodified (OperationalError with sqlite3 .orig)
    - Duplicate column labels from joins do not break row conversion
    - health_check, init_data_source / get_data_source singleton
    - Placeholder lastrowid values (0, negative) reported as None
"""

import sqlite3

import pytest
from sqlalchemy.exc import OperationalError

import recordkit.infrastructure.database as db_module
from recordkit.infrastructure.database import (
    SqlExecutor, get_data_source, init_data_source, usable_insert_id,
)
from recordkit.orm.record import Record
from tests.orm.sample_records import User


def test_insert_select_update_round_trip(db):
    inserted = db.execute(
        "INSERT INTO user (name, password) VALUES (:p0, :p1)",
        {"p0": "demo", "p1": "pw"},
    )
    assert inserted.last_insert_id == 1
    assert inserted.rowcount == 1

    selected = db.execute("SELECT id, name FROM user")
    assert selected.rows == [{"id": 1, "name": "demo"}]
    assert selected.rowcount == 1

    updated = db.execute("UPDATE user SET name = :p0", {"p0": "x"})
    assert updated.rowcount == 1
    assert updated.rows == []


def test_error_propagates_unmodified(executor):
    with pytest.raises(OperationalError) as exc:
        Record(executor).execute("CREATE TABLE IF NOT EXISTS")
    assert isinstance(exc.value.orig, sqlite3.OperationalError)
    assert "incomplete input" in str(exc.value.orig)


def test_error_from_record_operation_propagates(executor):
    class Missing(Record):
        table_name = "missing_table"

    with pytest.raises(OperationalError) as exc:
        Missing(executor).find(1)
    assert "no such table" in str(exc.value.orig)


def test_duplicate_labels_resolve_to_last(db):
    db.execute("INSERT INTO user (name) VALUES ('u')")
    db.execute("INSERT INTO contact (user_id, email) VALUES (1, 'e')")
    result = db.execute(
        "SELECT * FROM user LEFT JOIN contact ON contact.user_id = user.id"
    )
    assert result.rows[0]["email"] == "e"
    assert result.rows[0]["name"] == "u"


def test_health_check(executor):
    assert executor.health_check() is True


def test_health_check_reports_unreachable_database(tmp_path):
    broken = SqlExecutor.from_url(f"sqlite:///{tmp_path}/missing/dir/x.db")
    assert broken.health_check() is False


def test_get_data_source_requires_init(monkeypatch):
    monkeypatch.setattr(db_module, "data_source", None)
    with pytest.raises(RuntimeError):
        get_data_source()


def test_init_data_source_sets_singleton(monkeypatch):
    monkeypatch.setattr(db_module, "data_source", None)
    executor = init_data_source("sqlite://")
    try:
        assert get_data_source() is executor
    finally:
        executor.dispose()


@pytest.mark.parametrize("lastrowid, expected", [(7, 7), (0, None), (-1, None), (None, None)])
def test_usable_insert_id(lastrowid, expected):
    assert usable_insert_id(lastrowid) == expected


def test_record_insert_through_executor_sets_positive_pk(db):
    user = User(db, {"name": "returning", "password": "pw"}).insert()
    assert isinstance(db.insert_returning, bool)
    assert user.id == 1
    assert User(db).find(1).name == "returning"
