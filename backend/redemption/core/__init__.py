"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - Randomness and clock readings are passed in by the shell

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
