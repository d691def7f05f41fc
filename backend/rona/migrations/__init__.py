"""Schema Migrations — ordered Alembic revisions applied at startup.

Invariants:
    - Revisions form a single linear chain (001 -> 002 -> ...)
    - The applied revision is recorded in VERSION_TABLE, keyed by revision name
    - Upgrading an up-to-date database is a no-op
"""

from pathlib import Path

MIGRATIONS_DIR = Path(__file__).resolve().parent
VERSION_TABLE = "migrations"
