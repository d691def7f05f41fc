"""Services Layer — lifecycle engine and background sweep.

Invariants:
    - Every service operation runs inside exactly one unit of work
    - Services hold no in-memory locks or caches
"""
