"""recordkit — ActiveRecord-style data mapper over a SQL executor.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
      (from recordkit.orm.record import Record)
"""
