"""SQL Statements — pure builders for INSERT / UPDATE / DELETE and identifier checks.

Invariants:
    - Values NEVER appear in SQL text; every value becomes a named placeholder :pN
    - Placeholders are numbered in order of appearance, starting at :p0
    - Table and column identifiers must match IDENTIFIER_PATTERN or InvalidArgumentError

Design Decisions:
    - Named binds (":p0") over positional ("?"): SQLAlchemy text() binds by name and
      the same statement text works across drivers
    - Pure functions returning (sql, params): trivially testable, no executor needed
"""

import re
from typing import Any, Mapping

from recordkit.core.errors import InvalidArgumentError


IDENTIFIER_PATTERN = re.compile(
    r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$"
)


def validate_identifier(name: str, argument: str = "column") -> str:
    """Reject anything that is not a plain (optionally table-qualified) identifier."""
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
        raise InvalidArgumentError(
            f"Invalid {argument} identifier: {name!r}", argument,
        )
    return name


def placeholder(index: int) -> str:
    return f"p{index}"


def build_insert(
    table: str, values: Mapping[str, Any], returning: str | None = None,
) -> tuple[str, dict[str, Any]]:
    """INSERT INTO table (a, b) VALUES (:p0, :p1) [RETURNING pk]."""
    validate_identifier(table, "table")
    if not values:
        raise InvalidArgumentError("INSERT requires at least one column", "values")
    columns = [validate_identifier(c) for c in values]
    params = {placeholder(i): values[c] for i, c in enumerate(columns)}
    binds = ", ".join(f":{name}" for name in params)
    sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({binds})"
    if returning is not None:
        sql += f" RETURNING {validate_identifier(returning, 'returning')}"
    return sql, params


def build_update(
    table: str, values: Mapping[str, Any], pk_name: str, pk_value: Any,
) -> tuple[str, dict[str, Any]]:
    """UPDATE table SET a = :p0, b = :p1 WHERE pk = :p2."""
    validate_identifier(table, "table")
    validate_identifier(pk_name, "primary_key")
    if not values:
        raise InvalidArgumentError("UPDATE requires at least one column", "values")
    assignments = []
    params: dict[str, Any] = {}
    for i, column in enumerate(values):
        validate_identifier(column)
        name = placeholder(i)
        assignments.append(f"{column} = :{name}")
        params[name] = values[column]
    pk_bind = placeholder(len(params))
    params[pk_bind] = pk_value
    sql = f"UPDATE {table} SET {', '.join(assignments)} WHERE {pk_name} = :{pk_bind}"
    return sql, params


def build_delete(
    table: str, pk_name: str, pk_value: Any,
) -> tuple[str, dict[str, Any]]:
    """DELETE FROM table WHERE pk = :p0."""
    validate_identifier(table, "table")
    validate_identifier(pk_name, "primary_key")
    return f"DELETE FROM {table} WHERE {pk_name} = :p0", {"p0": pk_value}
