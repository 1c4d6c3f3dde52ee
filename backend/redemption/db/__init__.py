"""Database Base — declarative base shared by the ORM models and Alembic.

Invariants:
    - One metadata object: models register on Base, Alembic autogenerates from it

Design Decisions:
    - asyncpg driver for PostgreSQL (ADR: native async, no thread pool overhead)
"""
