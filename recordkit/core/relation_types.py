"""Relation Types — immutable declarations of how two record types are linked.

Invariants:
    - RelationDefinition is frozen: declared once at class creation, never mutated
    - HAS_ONE / HAS_MANY: target.foreign_key = parent.(local_key or parent pk)
    - BELONGS_TO: target.(local_key or target pk) = parent.foreign_key
    - cascade_delete is only meaningful on the owning side (HAS_ONE / HAS_MANY)

Design Decisions:
    - target may be a class or a registered class name: lets two records reference
      each other without import cycles
    - conditions callback receives the target query record: extra predicates or
      ordering (e.g. lambda q: q.order_by("id DESC")) without a mini-language
"""

from dataclasses import dataclass
from typing import Any, Callable

from recordkit.core.domain_types import RelationKind
from recordkit.core.errors import RelationDefinitionError
from recordkit.core.sql_statements import IDENTIFIER_PATTERN


@dataclass(frozen=True)
class RelationDefinition:
    """How a parent record reaches its related record(s)."""
    name: str
    kind: RelationKind
    target: Any                     # Record subclass or registered class name
    foreign_key: str
    local_key: str | None = None
    backref: str | None = None
    conditions: Callable[[Any], Any] | None = None
    cascade_delete: bool = False

    def __post_init__(self):
        for key in (self.foreign_key, self.local_key):
            if key is not None and not IDENTIFIER_PATTERN.match(key):
                raise RelationDefinitionError(self.name, f"invalid key column {key!r}")
        if self.cascade_delete and self.kind is RelationKind.BELONGS_TO:
            raise RelationDefinitionError(
                self.name, "cascade_delete is only allowed on has-one/has-many",
            )

    @property
    def is_collection(self) -> bool:
        return self.kind is RelationKind.HAS_MANY

    @property
    def empty_value(self) -> Any:
        return [] if self.is_collection else None
