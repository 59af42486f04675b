"""Core Layer — pure query, dirty-tracking and statement logic, no IO, no DB.

Invariants:
    - No module in core/ imports from orm/ or infrastructure/
    - All builders are deterministic: same calls, same (sql, params)

Design Decisions:
    - Functional core separated from the IO shell: ConditionBuilder and DirtyTracker
      are tested without a database
"""
