"""ORM Models — SQLAlchemy declarative models for persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Models hold no business rules; transitions live in core/ and services/
"""

from rona.models.quick_test import QuickTestRow  # noqa: F401
