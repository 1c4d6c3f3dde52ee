"""Infrastructure Layer — database access, store implementation, and logging.

Invariants:
    - Infrastructure implements core/ protocols; it never contains domain decisions
    - All SQLAlchemy errors surface as StoreError
"""
