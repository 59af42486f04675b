"""Infrastructure — SQLAlchemy executor and logging setup.

Invariants:
    - The only layer that imports a database driver stack
"""
