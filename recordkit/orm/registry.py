"""Record Registry — maps record class names to classes for late-bound relations.

Invariants:
    - Every Record subclass registers itself on creation (Record.__init_subclass__)
    - Re-registering a name replaces the previous class (last definition wins)
"""

import logging

from recordkit.core.errors import RelationDefinitionError

logger = logging.getLogger(__name__)


class RecordRegistry:
    """Class-level registry of Record subclasses by __name__."""

    _records: dict[str, type] = {}

    @classmethod
    def register(cls, record_cls: type) -> None:
        name = record_cls.__name__
        if name in cls._records and cls._records[name] is not record_cls:
            logger.debug(f"Record class '{name}' re-registered")
        cls._records[name] = record_cls

    @classmethod
    def get(cls, name: str) -> type | None:
        return cls._records.get(name)

    @classmethod
    def resolve(cls, relation: str, target) -> type:
        """Turn a relation target (class or class name) into a Record class."""
        if isinstance(target, type):
            return target
        record_cls = cls._records.get(target)
        if record_cls is None:
            raise RelationDefinitionError(
                relation, f"unknown target record type {target!r}",
            )
        return record_cls
