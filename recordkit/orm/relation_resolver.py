"""Relationship Resolver — lazily loads and caches declared relations.

Invariants:
    - First read runs exactly one query; later reads hit the instance cache
    - Cache lives until the parent is re-hydrated (find); never expires otherwise
    - The parent's query and dirty state are NEVER touched: a fresh target-type record
      bound to the same data source runs the lookup
    - Missing key value on the parent: no query, returns None / []
    - With backref, each related record's `backref` slot IS the parent (identity);
      without it, navigating back re-queries and yields an independent copy

Design Decisions:
    - Backref written into the related record's relation cache: the back-pointer is a
      shared reference, the plain variant stays a value copy; Record.__getattr__ reads
      the cache too, so the back-pointer works without a matching declared relation
"""

import logging

from recordkit.core.domain_types import RelationKind
from recordkit.core.relation_types import RelationDefinition
from recordkit.orm.registry import RecordRegistry

logger = logging.getLogger(__name__)


def resolve_relation(parent, definition: RelationDefinition):
    """Return the cached relation value, loading it on first access."""
    cache = parent.relation_cache
    if definition.name in cache:
        return cache[definition.name]
    value = load_relation(parent, definition)
    cache[definition.name] = value
    return value


def load_relation(parent, definition: RelationDefinition):
    """Run the lookup for one relation. Uncached — resolve_relation caches."""
    target_cls = RecordRegistry.resolve(definition.name, definition.target)
    query = target_cls(parent.data_source)

    if definition.kind is RelationKind.BELONGS_TO:
        key_value = parent.get(definition.foreign_key)
        target_column = definition.local_key or query.primary_key
    else:
        key_value = parent.get(definition.local_key or parent.primary_key)
        target_column = definition.foreign_key

    if key_value is None:
        return definition.empty_value

    query.eq(target_column, key_value)
    if definition.conditions is not None:
        definition.conditions(query)

    logger.debug(
        f"Resolving relation '{definition.name}' -> {target_cls.__name__}",
        extra={"table": query.table_name, "operation": "relation"},
    )

    if definition.is_collection:
        related = query.find_all()
        if definition.backref:
            for record in related:
                record.relation_cache[definition.backref] = parent
        return related

    related = query.find()
    if related is None:
        return None
    if definition.backref:
        related.relation_cache[definition.backref] = parent
    return related
