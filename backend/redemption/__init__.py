"""Redemption Codes — bulk issuance and single-use redemption of unique codes.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
