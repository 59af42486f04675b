"""Lifecycle Hooks — override points fired around every persistence operation.

Invariants:
    - Every hook defaults to a no-op
    - Hooks receive the record itself and may mutate it (attributes AND query state)
      before the operation proceeds
    - after_find_all receives the full hydrated list, once per find_all()

Design Decisions:
    - Plain class with no-op methods: Record inherits it (override on a subclass) OR a
      separate RecordHooks object is injected at construction (no inheritance needed)
"""


class RecordHooks:
    """No-op lifecycle capability. Subclass and override only what you need."""

    def before_find(self, record) -> None:
        pass

    def after_find(self, record) -> None:
        pass

    def before_find_all(self, record) -> None:
        pass

    def after_find_all(self, records: list) -> None:
        pass

    def before_insert(self, record) -> None:
        pass

    def after_insert(self, record) -> None:
        pass

    def before_update(self, record) -> None:
        pass

    def after_update(self, record) -> None:
        pass

    def before_delete(self, record) -> None:
        pass

    def after_delete(self, record) -> None:
        pass
