"""Rona Application Package — quick-test kit registry.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
