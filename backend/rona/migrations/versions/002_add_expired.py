"""Add expired flag to quick_tests.

Revision ID: 002_add_expired
Revises: 001_create_quick_tests
Create Date: 2026-09-09

Scrubbing clears person and sets expired; registered_at is kept for audit.
The composite index backs the periodic expiry sweep.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "002_add_expired"
down_revision: Union[str, None] = "001_create_quick_tests"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        "quick_tests",
        sa.Column("expired", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index(
        "ix_quick_tests_expired_registered_at",
        "quick_tests",
        ["expired", "registered_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_quick_tests_expired_registered_at", table_name="quick_tests")
    with op.batch_alter_table("quick_tests") as batch_op:
        batch_op.drop_column("expired")
