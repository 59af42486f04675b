"""Error Hierarchy — typed, categorized exceptions for record-layer failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Caller mistakes (bad condition input, lifecycle misuse) fail fast and loudly
    - Driver errors are NOT part of this hierarchy: they propagate unmodified
      from the data source (SQLAlchemy DBAPIError keeps the driver code in .orig)
    - "Not found" is never an exception: find() returns None

Design Decisions:
    - Single hierarchy with RecordKitError base: callers catch one type for all
      record-layer misuse
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and caller handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    LIFECYCLE = "lifecycle"
    DEFINITION = "definition"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    table_name: str | None = None
    operation: str | None = None
    record_pk: Any = None
    debug_info: dict[str, Any] | None = None


class RecordKitError(Exception):
    """Base exception for all recordkit errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    def to_dict(self) -> dict:
        """Convert to a structured error envelope (logs, API layers)."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "table_name": self.context.table_name,
                    "operation": self.context.operation,
                    "record_pk": self.context.record_pk,
                },
            }
        }


# ─── Caller Errors ──────────────────────────────────────────────

class InvalidArgumentError(RecordKitError):
    """Malformed condition-builder input (bad range, identifier, connector)."""
    def __init__(self, message: str, argument: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_ARGUMENT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )
        self.argument = argument


class RecordStateError(RecordKitError):
    """Operation not valid for the record's current lifecycle state."""
    def __init__(
        self, message: str, operation: str, state: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.operation = operation
        super().__init__(
            message, "INVALID_RECORD_STATE", ErrorCategory.LIFECYCLE,
            ErrorSeverity.ERROR, ctx,
        )
        self.operation = operation
        self.state = state


class RelationDefinitionError(RecordKitError):
    """Relation declaration cannot be resolved (unknown target, bad kind)."""
    def __init__(self, relation: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Relation '{relation}' is invalid: {reason}",
            "INVALID_RELATION", ErrorCategory.DEFINITION,
            ErrorSeverity.CRITICAL, context,
        )
        self.relation = relation
