"""Dirty Tracker — records which attributes changed since the last load or save.

Invariants:
    - Values assigned while hydrating are never marked dirty (they ARE persisted state)
    - Dirty keys are always a subset of the owning record's data map
    - Clearing is explicit: after a successful insert/update, or on hydration
    - Discarding a column removes it completely: not null-valued, not "changed"

Design Decisions:
    - Independent of the condition builder: a failed find() never touches dirty state
    - Dataclass with a hydration flag + context manager: pure, testable without a DB
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator


@dataclass
class DirtyTracker:
    """Per-record change set — pure dataclass, no IO."""

    # column -> value assigned since last load/save
    changes: dict[str, Any] = field(default_factory=dict)

    # True while a query row is being copied into the record
    hydrating_active: bool = False

    def mark_dirty(self, column: str, value: Any) -> None:
        if self.hydrating_active:
            return
        self.changes[column] = value

    def discard(self, column: str) -> None:
        self.changes.pop(column, None)

    def clear_dirty(self) -> None:
        self.changes.clear()

    def get_dirty(self) -> dict[str, Any]:
        """Current changed column -> new value map (live, not a copy)."""
        return self.changes

    def is_dirty(self, column: str | None = None) -> bool:
        if column is None:
            return bool(self.changes)
        return column in self.changes

    @contextmanager
    def hydrating(self) -> Iterator[None]:
        """Suspend tracking while persisted values are loaded."""
        previous = self.hydrating_active
        self.hydrating_active = True
        try:
            yield
        finally:
            self.hydrating_active = previous
