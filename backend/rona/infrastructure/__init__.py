"""Infrastructure Layer — database access, record store, logging.

Invariants:
    - Storage exceptions never cross this layer untranslated (see database.py)
"""
