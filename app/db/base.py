"""
SQLAlchemy declarative base and metadata.
Alembic autogenerate and the test fixtures both read Base.metadata.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass
