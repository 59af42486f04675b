"""SQL Executor — SQLAlchemy-backed DataSource: run one statement, return materialized rows.

Invariants:
    - One statement per execute(), committed on success (engine.begin())
    - Rows fully materialized as dicts before the connection returns to the pool
    - Driver errors (sqlalchemy.exc.DBAPIError) logged then re-raised UNMODIFIED:
      .orig keeps the driver's own code and message
    - The executor never closes itself; callers own its lifetime (dispose())
    - Generated keys: RETURNING where the dialect supports it (SQLite >= 3.35,
      PostgreSQL, MariaDB >= 10.5), cursor lastrowid otherwise (MySQL, older SQLite);
      a lastrowid <= 0 is reported as None

Design Decisions:
    - SQLAlchemy Core text() with named binds: records emit :p0-style placeholders,
      the driver does the quoting
    - In-memory SQLite URLs get StaticPool: every execute() sees the same database
    - Singleton data_source initialized once via init_data_source (no import side effects)
"""

import logging
from typing import Any, Mapping

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.pool import StaticPool

from recordkit.core.data_source_protocol import ExecutionResult

logger = logging.getLogger(__name__)

MEMORY_SQLITE_URLS = frozenset({"sqlite://", "sqlite:///:memory:"})


def usable_insert_id(lastrowid: Any) -> Any:
    """Only positive ids are real keys; psycopg2 reports 0 where no rowid exists."""
    if isinstance(lastrowid, int) and lastrowid > 0:
        return lastrowid
    return None


class SqlExecutor:
    """Executes SQL text against a SQLAlchemy engine."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @property
    def insert_returning(self) -> bool:
        """Whether the dialect hands back generated keys via INSERT ... RETURNING."""
        return bool(self.engine.dialect.insert_returning)

    @classmethod
    def from_url(
        cls, database_url: str, echo: bool = False, **engine_kwargs: Any,
    ) -> "SqlExecutor":
        if database_url in MEMORY_SQLITE_URLS:
            engine_kwargs.setdefault("poolclass", StaticPool)
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        return cls(create_engine(database_url, echo=echo, **engine_kwargs))

    def execute(
        self, sql: str, params: Mapping[str, Any] | None = None,
    ) -> ExecutionResult:
        logger.debug(f"Executing SQL: {sql}")
        try:
            with self.engine.begin() as conn:
                result = conn.execute(text(sql), dict(params or {}))
                if result.returns_rows:
                    # zip over keys: duplicate labels from joins resolve to the last one
                    keys = list(result.keys())
                    rows = [dict(zip(keys, row)) for row in result]
                    return ExecutionResult(rowcount=len(rows), rows=rows)
                return ExecutionResult(
                    rowcount=result.rowcount,
                    last_insert_id=usable_insert_id(result.lastrowid),
                )
        except DBAPIError as e:
            logger.error(
                f"SQL execution failed: {e.orig}",
                extra={"error_code": type(e.orig).__name__},
            )
            raise

    def health_check(self) -> bool:
        """Check database connectivity (for readiness checks)."""
        try:
            self.execute("SELECT 1")
            return True
        except DBAPIError as e:
            logger.error(f"DB health check failed: {e}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()


# Singleton (initialized on startup)
data_source: SqlExecutor | None = None


def init_data_source(database_url: str, **kwargs: Any) -> SqlExecutor:
    global data_source
    data_source = SqlExecutor.from_url(database_url, **kwargs)
    return data_source


def get_data_source() -> SqlExecutor:
    """Shared executor for records created by application code."""
    if not data_source:
        raise RuntimeError("Data source not initialized")
    return data_source
