"""ORM Layer — the Record base, declared fields, hooks and relation resolution.

Invariants:
    - Records talk to the database ONLY through the DataSource protocol
    - Every Record subclass registers itself so relations can name targets as strings

Design Decisions:
    - Explicit descriptors (Column, HasOne, HasMany, BelongsTo) per record type
"""
