"""Declarative Base — metadata shared by the ORM models and Alembic's env.py."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
