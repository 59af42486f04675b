"""Condition Builder — accumulates WHERE fragments, bindings and SELECT modifiers.

Invariants:
    - Values are ALWAYS bound (:pN placeholders), never interpolated into SQL text
    - Placeholders are numbered in order of appearance across the whole chain
    - Each predicate carries the connector active when it was added (AND unless or_())
    - wrap(c) closes the current group and joins it to everything before with c;
      groups fold left: ((g1) c2 (g2)) c3 (g3)
    - A trailing open group is closed with AND at assembly
    - between() needs an ordered pair (list/tuple); in_()/not_in() reject a bare
      string; empty in_() is always false, empty not_in() is always true

Design Decisions:
    - Mutable builder owned by ONE record per fluent chain, reset after each terminal
      operation, no cloning per call
    - Column identifiers validated; select/join/order/group expressions are raw SQL
      supplied by the programmer, never by end-user values
    - LIMIT/OFFSET bound at assembly time so their placeholders follow the WHERE ones
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from recordkit.core.domain_types import Connector, JoinType
from recordkit.core.errors import InvalidArgumentError
from recordkit.core.sql_statements import placeholder, validate_identifier


ALWAYS_FALSE = "1 = 0"
ALWAYS_TRUE = "1 = 1"
HAVING_OPERATORS = frozenset({"=", "<>", "!=", "<", "<=", ">", ">="})


@dataclass(frozen=True)
class Predicate:
    """One WHERE fragment and the connector that links it to its predecessor."""
    connector: Connector
    sql: str


def _render_group(predicates: list[Predicate]) -> str:
    parts = [predicates[0].sql]
    for predicate in predicates[1:]:
        parts.append(f"{predicate.connector.value} {predicate.sql}")
    return " ".join(parts)


def _coerce_connector(value: Connector | str) -> Connector:
    try:
        return Connector(value.upper() if isinstance(value, str) else value)
    except ValueError:
        raise InvalidArgumentError(
            f"Unknown connector {value!r} (expected AND or OR)", "connector",
        ) from None


def _value_list(values: Iterable[Any]) -> list[Any]:
    if isinstance(values, (str, bytes)):
        raise InvalidArgumentError(
            f"Expected a collection of values, got the string {values!r}", "values",
        )
    return list(values)


def _check_count(value: Any, argument: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgumentError(
            f"{argument} must be a non-negative integer, got {value!r}", argument,
        )
    return value


@dataclass
class ConditionBuilder:
    """Query state for one fluent chain — pure, no IO."""

    params: dict[str, Any] = field(default_factory=dict)

    # Closed groups, each with the connector that joins it to the groups before it
    closed_groups: list[tuple[Connector, list[Predicate]]] = field(default_factory=list)
    current_group: list[Predicate] = field(default_factory=list)
    pending_connector: Connector = Connector.AND

    columns: list[str] = field(default_factory=list)
    joins: list[str] = field(default_factory=list)
    order_clauses: list[str] = field(default_factory=list)
    group_clauses: list[str] = field(default_factory=list)
    having_clauses: list[str] = field(default_factory=list)
    limit_count: int | None = None
    offset_count: int | None = None

    # ─── Bookkeeping ─────────────────────────────────────────────

    def reset(self) -> "ConditionBuilder":
        self.params = {}
        self.closed_groups = []
        self.current_group = []
        self.pending_connector = Connector.AND
        self.columns = []
        self.joins = []
        self.order_clauses = []
        self.group_clauses = []
        self.having_clauses = []
        self.limit_count = None
        self.offset_count = None
        return self

    @property
    def has_conditions(self) -> bool:
        return bool(self.closed_groups or self.current_group)

    def _bind(self, value: Any) -> str:
        name = placeholder(len(self.params))
        self.params[name] = value
        return f":{name}"

    def _append(self, sql: str) -> "ConditionBuilder":
        self.current_group.append(Predicate(self.pending_connector, sql))
        self.pending_connector = Connector.AND
        return self

    def _compare(self, column: str, operator: str, value: Any) -> "ConditionBuilder":
        validate_identifier(column)
        return self._append(f"{column} {operator} {self._bind(value)}")

    # ─── Connectors & grouping ───────────────────────────────────

    def or_(self) -> "ConditionBuilder":
        """Join the NEXT predicate with OR instead of AND."""
        self.pending_connector = Connector.OR
        return self

    def and_(self) -> "ConditionBuilder":
        self.pending_connector = Connector.AND
        return self

    def wrap(self, connector: Connector | str = Connector.AND) -> "ConditionBuilder":
        """Close the current group (joined by `connector`) and open a new one.

        Closing an empty group is a no-op: there is nothing to parenthesize.
        """
        joined_by = _coerce_connector(connector)
        if self.current_group:
            self.closed_groups.append((joined_by, self.current_group))
            self.current_group = []
        self.pending_connector = Connector.AND
        return self

    # ─── Predicates ──────────────────────────────────────────────

    def eq(self, column: str, value: Any) -> "ConditionBuilder":
        return self._compare(column, "=", value)

    def ne(self, column: str, value: Any) -> "ConditionBuilder":
        return self._compare(column, "<>", value)

    def lt(self, column: str, value: Any) -> "ConditionBuilder":
        return self._compare(column, "<", value)

    def le(self, column: str, value: Any) -> "ConditionBuilder":
        return self._compare(column, "<=", value)

    def gt(self, column: str, value: Any) -> "ConditionBuilder":
        return self._compare(column, ">", value)

    def ge(self, column: str, value: Any) -> "ConditionBuilder":
        return self._compare(column, ">=", value)

    def like(self, column: str, pattern: str) -> "ConditionBuilder":
        return self._compare(column, "LIKE", pattern)

    def not_like(self, column: str, pattern: str) -> "ConditionBuilder":
        return self._compare(column, "NOT LIKE", pattern)

    def is_null(self, column: str) -> "ConditionBuilder":
        validate_identifier(column)
        return self._append(f"{column} IS NULL")

    def is_not_null(self, column: str) -> "ConditionBuilder":
        validate_identifier(column)
        return self._append(f"{column} IS NOT NULL")

    def in_(self, column: str, values: Iterable[Any]) -> "ConditionBuilder":
        """column IN (...). An empty set matches nothing."""
        validate_identifier(column)
        items = _value_list(values)
        if not items:
            return self._append(ALWAYS_FALSE)
        binds = ", ".join(self._bind(v) for v in items)
        return self._append(f"{column} IN ({binds})")

    def not_in(self, column: str, values: Iterable[Any]) -> "ConditionBuilder":
        """column NOT IN (...). An empty set excludes nothing."""
        validate_identifier(column)
        items = _value_list(values)
        if not items:
            return self._append(ALWAYS_TRUE)
        binds = ", ".join(self._bind(v) for v in items)
        return self._append(f"{column} NOT IN ({binds})")

    def between(self, column: str, bounds: Sequence[Any]) -> "ConditionBuilder":
        validate_identifier(column)
        if isinstance(bounds, (str, bytes)) or not isinstance(bounds, Sequence) \
                or len(bounds) != 2:
            raise InvalidArgumentError(
                f"between() needs an ordered pair of bounds, got {bounds!r}", "bounds",
            )
        low, high = bounds
        return self._append(
            f"{column} BETWEEN {self._bind(low)} AND {self._bind(high)}"
        )

    # ─── Select modifiers ────────────────────────────────────────

    def select(self, *columns: str) -> "ConditionBuilder":
        """Replace the projected column list (default `*`)."""
        self.columns = [c for c in columns if c]
        return self

    def join(
        self, table_expr: str, on_expr: str | None = None,
        join_type: JoinType | str = JoinType.LEFT,
    ) -> "ConditionBuilder":
        try:
            kind = JoinType(join_type.upper() if isinstance(join_type, str) else join_type)
        except ValueError:
            raise InvalidArgumentError(
                f"Unknown join type {join_type!r}", "join_type",
            ) from None
        if kind is JoinType.CROSS:
            self.joins.append(f"CROSS JOIN {table_expr}")
        elif not on_expr:
            raise InvalidArgumentError(
                f"{kind.value} JOIN requires an ON expression", "on_expr",
            )
        else:
            self.joins.append(f"{kind.value} JOIN {table_expr} ON {on_expr}")
        return self

    def limit(self, count: int, offset: int | None = None) -> "ConditionBuilder":
        self.limit_count = _check_count(count, "count")
        self.offset_count = None if offset is None else _check_count(offset, "offset")
        return self

    def order_by(self, *expressions: str) -> "ConditionBuilder":
        self.order_clauses.extend(expressions)
        return self

    def group_by(self, *expressions: str) -> "ConditionBuilder":
        self.group_clauses.extend(expressions)
        return self

    def having(self, expression: str, operator: str, value: Any) -> "ConditionBuilder":
        """HAVING expression <op> :pN — e.g. having("COUNT(id)", ">", 1)."""
        if operator not in HAVING_OPERATORS:
            raise InvalidArgumentError(
                f"Unsupported HAVING operator {operator!r}", "operator",
            )
        self.having_clauses.append(f"{expression} {operator} {self._bind(value)}")
        return self

    # ─── Assembly ────────────────────────────────────────────────

    def build_where(self) -> tuple[str, dict[str, Any]]:
        """Fold all groups into one WHERE expression (without the keyword)."""
        groups = list(self.closed_groups)
        if self.current_group:
            groups.append((Connector.AND, self.current_group))
        sql = ""
        for connector, predicates in groups:
            rendered = _render_group(predicates)
            if not sql:
                sql = rendered
            else:
                sql = f"({sql}) {connector.value} ({rendered})"
        return sql, dict(self.params)

    def build_select(
        self, table: str, single: bool = False,
    ) -> tuple[str, dict[str, Any]]:
        """Assemble the full SELECT. `single` forces LIMIT 1, keeping any offset."""
        validate_identifier(table, "table")
        where, params = self.build_where()
        columns = ", ".join(self.columns) if self.columns else "*"
        parts = [f"SELECT {columns} FROM {table}"]
        parts.extend(self.joins)
        if where:
            parts.append(f"WHERE {where}")
        if self.group_clauses:
            parts.append(f"GROUP BY {', '.join(self.group_clauses)}")
        if self.having_clauses:
            parts.append(f"HAVING {' AND '.join(self.having_clauses)}")
        if self.order_clauses:
            parts.append(f"ORDER BY {', '.join(self.order_clauses)}")

        count = 1 if single else self.limit_count
        if count is not None:
            name = placeholder(len(params))
            params[name] = count
            parts.append(f"LIMIT :{name}")
            if self.offset_count is not None:
                name = placeholder(len(params))
                params[name] = self.offset_count
                parts.append(f"OFFSET :{name}")
        return " ".join(parts), params
