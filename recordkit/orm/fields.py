"""Declared Fields — explicit column and relation descriptors per record type.

Invariants:
    - Column reads/writes go through Record.get/set/unset; the data map is the
      single source of truth, writes are dirty-tracked
    - Reading an absent column yields None (not AttributeError)
    - Relation descriptors resolve lazily on first read and cache on the instance
    - Assigning to a relation replaces the cached value; it never touches columns

Design Decisions:
    - Descriptors for declared fields: every persisted field is
      visible in the class body; Record.__setattr__ only routes undeclared keys
    - RelationDefinition built in __set_name__: the attribute name IS the relation name
"""

from typing import Any, Callable

from recordkit.core.domain_types import RelationKind
from recordkit.core.relation_types import RelationDefinition
from recordkit.orm.relation_resolver import resolve_relation


class Column:
    """A persisted column. Column("user_name") maps an attribute to another column name."""

    def __init__(self, column_name: str | None = None):
        self.column_name = column_name

    def __set_name__(self, owner, name):
        self.attr_name = name
        if self.column_name is None:
            self.column_name = name

    def __get__(self, record, owner=None):
        if record is None:
            return self
        return record.get(self.column_name)

    def __set__(self, record, value):
        record.set(self.column_name, value)

    def __delete__(self, record):
        record.unset(self.column_name)

    def __repr__(self):
        return f"Column({self.column_name!r})"


class RelationField:
    """Base descriptor for declared relations."""

    kind: RelationKind

    def __init__(
        self,
        target: Any,
        foreign_key: str,
        local_key: str | None = None,
        backref: str | None = None,
        conditions: Callable[[Any], Any] | None = None,
        cascade_delete: bool = False,
    ):
        self._options = {
            "target": target,
            "foreign_key": foreign_key,
            "local_key": local_key,
            "backref": backref,
            "conditions": conditions,
            "cascade_delete": cascade_delete,
        }
        self.definition: RelationDefinition | None = None

    def __set_name__(self, owner, name):
        self.name = name
        self.definition = RelationDefinition(
            name=name, kind=self.kind, **self._options,
        )

    def __get__(self, record, owner=None):
        if record is None:
            return self
        return resolve_relation(record, self.definition)

    def __set__(self, record, value):
        record.relation_cache[self.name] = value

    def __delete__(self, record):
        record.relation_cache.pop(self.name, None)

    def __repr__(self):
        return f"{type(self).__name__}({self._options['target']!r}, {self._options['foreign_key']!r})"


class HasOne(RelationField):
    kind = RelationKind.HAS_ONE


class HasMany(RelationField):
    kind = RelationKind.HAS_MANY


class BelongsTo(RelationField):
    kind = RelationKind.BELONGS_TO
