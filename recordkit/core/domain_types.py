"""Domain Types — enums and aliases that replace bare strings across the record layer.

Invariants:
    - All valid states encoded as Enums: no raw string matching in record logic
    - RecordState transitions: NEW -> PERSISTED -> DELETED (terminal)
    - Connector and JoinType values are the exact SQL keywords emitted

Design Decisions:
    - str Enums: compare equal to their SQL keyword, so callers may pass "OR" or Connector.OR
    - NewType aliases: zero runtime cost, full type-checker support
"""

from enum import Enum
from typing import Any, NewType


# ─── Identity / Value Types ──────────────────────────────────────

ColumnName = NewType("ColumnName", str)
PrimaryKeyValue = Any


# ─── Enums ───────────────────────────────────────────────────────

class RecordState(str, Enum):
    """Record lifecycle states."""
    NEW = "new"
    PERSISTED = "persisted"
    DELETED = "deleted"


class Connector(str, Enum):
    """Boolean connectors between predicates and between wrapped groups."""
    AND = "AND"
    OR = "OR"


class JoinType(str, Enum):
    """Explicit join flavours accepted by join()."""
    INNER = "INNER"
    LEFT = "LEFT"
    CROSS = "CROSS"


class RelationKind(str, Enum):
    """Declared relation kinds. BELONGS_TO is the inverse side of HAS_ONE/HAS_MANY."""
    HAS_ONE = "has-one"
    HAS_MANY = "has-many"
    BELONGS_TO = "belongs-to"


class Operation(str, Enum):
    """Persistence operations, used as error/log context."""
    FIND = "find"
    FIND_ALL = "find_all"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
