"""Services Layer — operation handlers and the code generator.

Invariants:
    - Handlers validate and scope first, then call the store
    - Handlers depend on the CodeStore protocol, never on a session directly

Design Decisions:
    - One handler file per concern for locality (ADR: no god objects)
"""
