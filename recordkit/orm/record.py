"""Record — ActiveRecord-style base: one instance represents one row of one table.

Invariants:
    - State machine: NEW (no pk) -> PERSISTED (pk known) -> DELETED (terminal)
    - Only dirty columns are written: INSERT/UPDATE column sets == get_dirty()
    - insert()/update() with an empty dirty set are no-op successes returning self
    - update()/delete() without a pk, and ANY persistence call on a DELETED record,
      raise RecordStateError
    - find() hydrates in place (replaces data, clears dirty, custom data and relation
      cache) and returns self, or returns None and leaves the record untouched
    - find_all() returns fresh instances sharing this record's data source; [] when empty
    - Query state is reset after every find()/find_all(), even if execution fails
    - Custom data is readable like a column but never dirty and never persisted
    - Public attribute assignment is always dirty-tracked, declared or not; only
      underscore names, data_source, relation_cache and class attributes bypass it
    - A generated pk comes from RETURNING or last_insert_id; neither → RecordStateError
    - Cascading children are deleted only after the parent row is confirmed to exist
    - Driver errors from the data source propagate unmodified

Design Decisions:
    - Explicit fluent methods delegating to ConditionBuilder: every chainable call is
      visible here, no __getattr__ forwarding
    - __getattr__ only as a read fallback for undeclared keys (joined or aggregate
      columns such as "COUNT(*) AS count", custom data, back-references under an
      undeclared name); declared Column descriptors take precedence
    - Hooks dispatched through self._hooks: the record itself by default, or an
      injected RecordHooks object
    - Deleting does NOT cascade unless a relation opts in with cascade_delete=True
"""

import logging
from typing import Any, Iterable, Mapping, Sequence

from recordkit.core.conditions import ConditionBuilder
from recordkit.core.data_source_protocol import DataSource, ExecutionResult
from recordkit.core.dirty_tracker import DirtyTracker
from recordkit.core.domain_types import Connector, JoinType, Operation, RecordState
from recordkit.core.errors import ErrorContext, InvalidArgumentError, RecordStateError
from recordkit.core.sql_statements import build_delete, build_insert, build_update
from recordkit.orm.fields import Column, RelationField
from recordkit.orm.hooks import RecordHooks
from recordkit.orm.registry import RecordRegistry

logger = logging.getLogger(__name__)


class Record(RecordHooks):
    """Base class for all records. Subclasses declare table_name, columns, relations."""

    table_name: str = ""
    primary_key: str = "id"

    # Filled per subclass by __init_subclass__
    _columns: dict[str, Column] = {}
    _relations: dict[str, RelationField] = {}

    # Public instance attributes that are not columns
    _PLAIN_ATTRIBUTES = frozenset({"data_source", "relation_cache"})

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        columns: dict[str, Column] = {}
        relations: dict[str, RelationField] = {}
        for klass in reversed(cls.__mro__):
            for name, attr in vars(klass).items():
                if isinstance(attr, Column):
                    columns[name] = attr
                elif isinstance(attr, RelationField):
                    relations[name] = attr
        cls._columns = columns
        cls._relations = relations
        if not cls.table_name:
            cls.table_name = cls.__name__.lower()
        RecordRegistry.register(cls)

    def __init__(
        self,
        data_source: DataSource,
        data: Mapping[str, Any] | None = None,
        *,
        hooks: RecordHooks | None = None,
        table_name: str | None = None,
        primary_key: str | None = None,
    ):
        self.data_source = data_source
        self._data: dict[str, Any] = {}
        self._custom_data: dict[str, Any] = {}
        self._tracker = DirtyTracker()
        self._query = ConditionBuilder()
        self.relation_cache: dict[str, Any] = {}
        self._injected_hooks = hooks
        self._hooks: RecordHooks = hooks if hooks is not None else self
        self._loaded_pk: Any = None
        self._deleted = False
        if table_name is not None:
            self.table_name = table_name
        if primary_key is not None:
            self.primary_key = primary_key
        if data:
            self.dirty(data)

    # ─── Attribute access ────────────────────────────────────────

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails: undeclared columns, custom data,
        # back-references stored under a name the record does not declare
        if name.startswith("_"):
            raise AttributeError(name)
        for slot in ("_data", "_custom_data", "relation_cache"):
            values = self.__dict__.get(slot, {})
            if name in values:
                return values[name]
        raise AttributeError(
            f"'{type(self).__name__}' record has no attribute or column '{name}'"
        )

    def _is_plain_attribute(self, name: str) -> bool:
        return (
            name.startswith("_")
            or name in self._PLAIN_ATTRIBUTES
            or hasattr(type(self), name)
        )

    def __setattr__(self, name: str, value: Any) -> None:
        # Declared columns/relations are descriptors and handle themselves
        if self._is_plain_attribute(name):
            object.__setattr__(self, name, value)
        else:
            self.set(name, value)

    def __delattr__(self, name: str) -> None:
        if self._is_plain_attribute(name):
            object.__delattr__(self, name)
        elif name in self._data or name in self._custom_data:
            self.unset(name)
        else:
            raise AttributeError(
                f"'{type(self).__name__}' record has no column '{name}' to delete"
            )

    @classmethod
    def declared_columns(cls) -> set[str]:
        return {column.column_name for column in cls._columns.values()}

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._data:
            return self._data[key]
        return self._custom_data.get(key, default)

    def set(self, key: str, value: Any) -> "Record":
        """Assign a column value (dirty-tracked) or, for a relation name, its cached value."""
        if key in self._relations:
            self.relation_cache[key] = value
            return self
        self._assign(key, value)
        return self

    def _assign(self, column: str, value: Any) -> None:
        self._data[column] = value
        self._tracker.mark_dirty(column, value)

    def unset(self, key: str) -> "Record":
        """Remove a key entirely: gone from data, dirty set and custom data."""
        self._data.pop(key, None)
        self._tracker.discard(key)
        self._custom_data.pop(key, None)
        return self

    def dirty(self, values: Mapping[str, Any]) -> "Record":
        """Bulk, dirty-tracked assignment."""
        for key, value in values.items():
            self.set(key, value)
        return self

    def set_custom_data(self, key: str, value: Any) -> "Record":
        """Attach a computed, non-persisted value (never dirty, never written)."""
        if key in self.declared_columns():
            raise InvalidArgumentError(
                f"'{key}' is a declared column; assign it instead", "key",
            )
        self._custom_data[key] = value
        return self

    def get_dirty(self) -> dict[str, Any]:
        return self._tracker.get_dirty()

    def is_dirty(self, column: str | None = None) -> bool:
        return self._tracker.is_dirty(column)

    def clear_dirty(self) -> "Record":
        self._tracker.clear_dirty()
        return self

    def to_dict(self, include_custom: bool = False) -> dict[str, Any]:
        data = dict(self._data)
        if include_custom:
            data.update(self._custom_data)
        return data

    @property
    def pk_value(self) -> Any:
        return self._data.get(self.primary_key)

    @property
    def state(self) -> RecordState:
        if self._deleted:
            return RecordState.DELETED
        if self.pk_value is None:
            return RecordState.NEW
        return RecordState.PERSISTED

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.primary_key}={self.pk_value!r} {self.state.value}>"

    # ─── Fluent query building ───────────────────────────────────

    def eq(self, column: str, value: Any) -> "Record":
        self._query.eq(column, value)
        return self

    def ne(self, column: str, value: Any) -> "Record":
        self._query.ne(column, value)
        return self

    def lt(self, column: str, value: Any) -> "Record":
        self._query.lt(column, value)
        return self

    def le(self, column: str, value: Any) -> "Record":
        self._query.le(column, value)
        return self

    def gt(self, column: str, value: Any) -> "Record":
        self._query.gt(column, value)
        return self

    def ge(self, column: str, value: Any) -> "Record":
        self._query.ge(column, value)
        return self

    def like(self, column: str, pattern: str) -> "Record":
        self._query.like(column, pattern)
        return self

    def not_like(self, column: str, pattern: str) -> "Record":
        self._query.not_like(column, pattern)
        return self

    def is_null(self, column: str) -> "Record":
        self._query.is_null(column)
        return self

    def is_not_null(self, column: str) -> "Record":
        self._query.is_not_null(column)
        return self

    def in_(self, column: str, values: Iterable[Any]) -> "Record":
        self._query.in_(column, values)
        return self

    def not_in(self, column: str, values: Iterable[Any]) -> "Record":
        self._query.not_in(column, values)
        return self

    def between(self, column: str, bounds: Sequence[Any]) -> "Record":
        self._query.between(column, bounds)
        return self

    def or_(self) -> "Record":
        self._query.or_()
        return self

    def and_(self) -> "Record":
        self._query.and_()
        return self

    def wrap(self, connector: Connector | str = Connector.AND) -> "Record":
        self._query.wrap(connector)
        return self

    def select(self, *columns: str) -> "Record":
        self._query.select(*columns)
        return self

    def join(
        self, table_expr: str, on_expr: str | None = None,
        join_type: JoinType | str = JoinType.LEFT,
    ) -> "Record":
        self._query.join(table_expr, on_expr, join_type)
        return self

    def limit(self, count: int, offset: int | None = None) -> "Record":
        self._query.limit(count, offset)
        return self

    def order_by(self, *expressions: str) -> "Record":
        self._query.order_by(*expressions)
        return self

    def group_by(self, *expressions: str) -> "Record":
        self._query.group_by(*expressions)
        return self

    def having(self, expression: str, operator: str, value: Any) -> "Record":
        self._query.having(expression, operator, value)
        return self

    def reset_query(self) -> "Record":
        self._query.reset()
        return self

    # ─── Persistence ─────────────────────────────────────────────

    def execute(
        self, sql: str, params: Mapping[str, Any] | None = None,
    ) -> ExecutionResult:
        """Run raw SQL on this record's data source (DDL, maintenance)."""
        return self.data_source.execute(sql, params)

    def find(self, id: Any = None) -> "Record | None":
        """Load the first matching row into THIS record. None when nothing matches."""
        self._ensure_not_deleted(Operation.FIND)
        if id is not None:
            self._query.reset()
            self._query.eq(self.primary_key, id)
        try:
            self._hooks.before_find(self)
            sql, params = self._query.build_select(self.table_name, single=True)
        finally:
            self._query.reset()

        result = self.data_source.execute(sql, params)
        if not result.rows:
            logger.debug(
                f"find on '{self.table_name}' matched no row",
                extra={"table": self.table_name, "operation": Operation.FIND.value},
            )
            return None
        self._hydrate(result.rows[0])
        self._hooks.after_find(self)
        return self

    def find_all(self) -> list["Record"]:
        """Load every matching row into fresh records of this type."""
        self._ensure_not_deleted(Operation.FIND_ALL)
        try:
            self._hooks.before_find_all(self)
            sql, params = self._query.build_select(self.table_name)
        finally:
            self._query.reset()

        result = self.data_source.execute(sql, params)
        records = []
        for row in result.rows:
            record = self._spawn()
            record._hydrate(row)
            record._hooks.after_find(record)
            records.append(record)
        self._hooks.after_find_all(records)
        return records

    def insert(self) -> "Record":
        self._ensure_not_deleted(Operation.INSERT)
        if not self._tracker.is_dirty():
            return self

        self._hooks.before_insert(self)
        dirty = self._tracker.get_dirty()
        generated = self.primary_key not in dirty
        returning = (
            self.primary_key
            if generated and getattr(self.data_source, "insert_returning", False)
            else None
        )
        sql, params = build_insert(self.table_name, dirty, returning=returning)
        result = self.data_source.execute(sql, params)

        if generated:
            with self._tracker.hydrating():
                self._assign(self.primary_key, self._generated_pk(result, returning))
        self._loaded_pk = self.pk_value
        logger.debug(
            f"Inserted into '{self.table_name}'",
            extra={
                "table": self.table_name, "operation": Operation.INSERT.value,
                "record_pk": self.pk_value,
            },
        )
        self._hooks.after_insert(self)
        self._tracker.clear_dirty()
        return self

    def update(self) -> "Record":
        self._ensure_not_deleted(Operation.UPDATE)
        self._ensure_has_pk(Operation.UPDATE)
        if not self._tracker.is_dirty():
            return self

        self._hooks.before_update(self)
        where_pk = self._loaded_pk if self._loaded_pk is not None else self.pk_value
        sql, params = build_update(
            self.table_name, self._tracker.get_dirty(), self.primary_key, where_pk,
        )
        result = self.data_source.execute(sql, params)
        self._loaded_pk = self.pk_value
        logger.debug(
            f"Updated '{self.table_name}'",
            extra={
                "table": self.table_name, "operation": Operation.UPDATE.value,
                "record_pk": self.pk_value, "row_count": result.rowcount,
            },
        )
        self._hooks.after_update(self)
        self._tracker.clear_dirty()
        return self

    def save(self) -> "Record":
        """insert() when there is no primary key yet, update() otherwise."""
        if self.pk_value is None:
            return self.insert()
        return self.update()

    def delete(self) -> bool:
        """Delete this row. True when a row was removed, False when none matched."""
        self._ensure_not_deleted(Operation.DELETE)
        self._ensure_has_pk(Operation.DELETE)

        self._hooks.before_delete(self)
        where_pk = self._loaded_pk if self._loaded_pk is not None else self.pk_value
        if self._cascading_relations():
            # children go only when the parent row is really there
            if not self._row_exists(where_pk):
                return False
            self._cascade_delete()
        sql, params = build_delete(self.table_name, self.primary_key, where_pk)
        result = self.data_source.execute(sql, params)
        if result.rowcount == 0:
            return False

        self._deleted = True
        logger.debug(
            f"Deleted from '{self.table_name}'",
            extra={
                "table": self.table_name, "operation": Operation.DELETE.value,
                "record_pk": where_pk,
            },
        )
        self._hooks.after_delete(self)
        return True

    # ─── Internals ───────────────────────────────────────────────

    def _hydrate(self, row: Mapping[str, Any]) -> None:
        """Replace data with a persisted row. Nothing becomes dirty."""
        self._data = {}
        self._custom_data = {}
        self._tracker.clear_dirty()
        self.relation_cache.clear()
        with self._tracker.hydrating():
            for column, value in row.items():
                self._assign(column, value)
        self._loaded_pk = self.pk_value

    def _spawn(self) -> "Record":
        return type(self)(
            self.data_source,
            hooks=self._injected_hooks,
            table_name=self.table_name,
            primary_key=self.primary_key,
        )

    def _generated_pk(self, result: ExecutionResult, returning: str | None) -> Any:
        if returning is not None and result.rows:
            value = result.rows[0].get(returning)
        else:
            value = result.last_insert_id
        if value is None:
            raise RecordStateError(
                f"INSERT into '{self.table_name}' succeeded but the data source "
                f"reported no generated '{self.primary_key}'",
                Operation.INSERT.value, RecordState.NEW.value,
                ErrorContext(table_name=self.table_name),
            )
        return value

    def _cascading_relations(self) -> list[str]:
        return [
            name for name, field in self._relations.items()
            if field.definition.cascade_delete
        ]

    def _row_exists(self, pk_value: Any) -> bool:
        sql, params = (
            ConditionBuilder()
            .select(self.primary_key)
            .eq(self.primary_key, pk_value)
            .build_select(self.table_name, single=True)
        )
        return bool(self.data_source.execute(sql, params).rows)

    def _cascade_delete(self) -> None:
        for name in self._cascading_relations():
            related = getattr(self, name)
            if related is None:
                continue
            children = related if isinstance(related, list) else [related]
            for child in children:
                if child.state is RecordState.PERSISTED:
                    child.delete()
            self.relation_cache.pop(name, None)

    def _ensure_not_deleted(self, operation: Operation) -> None:
        if self._deleted:
            raise RecordStateError(
                f"Cannot {operation.value}: record was deleted",
                operation.value, RecordState.DELETED.value,
                ErrorContext(table_name=self.table_name, record_pk=self._loaded_pk),
            )

    def _ensure_has_pk(self, operation: Operation) -> None:
        if self.pk_value is None:
            raise RecordStateError(
                f"Cannot {operation.value}: primary key '{self.primary_key}' is not set",
                operation.value, RecordState.NEW.value,
                ErrorContext(table_name=self.table_name),
            )
