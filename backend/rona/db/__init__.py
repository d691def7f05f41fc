"""Database Primitives — declarative Base and portable column types.

Invariants:
    - All models inherit from Base (db/base.py)
    - Timestamps persist as naive UTC and load as aware UTC
"""
