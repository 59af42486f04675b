"""Boundary Protocols — contract between the record layer and the SQL executor.

Invariants:
    - Record code NEVER imports a concrete driver; it talks to DataSource only
    - execute() is synchronous and runs exactly one statement
    - Errors raised by execute() reach the caller unmodified
    - last_insert_id is a usable generated key or None, never a driver placeholder (0)

Design Decisions:
    - Protocol over ABC: structural subtyping, any executor with the right shape works
    - ExecutionResult is frozen and fully materialized: rows are plain dicts, safe to
      read after the underlying connection has been released
    - insert_returning is optional: sources without it are asked for last_insert_id
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one statement: affected rows, generated key, fetched rows."""
    rowcount: int = 0
    last_insert_id: Any = None
    rows: list[dict[str, Any]] = field(default_factory=list)


class DataSource(Protocol):
    """Structural contract for the "execute SQL, return rows" collaborator."""

    # True when INSERT ... RETURNING <pk> yields the generated key as a row
    insert_returning: bool

    def execute(
        self, sql: str, params: Mapping[str, Any] | None = None,
    ) -> ExecutionResult: ...
