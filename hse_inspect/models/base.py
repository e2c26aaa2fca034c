"""SQLAlchemy declarative Base shared by the store's ORM models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base; Alembic autogenerate reads Base.metadata."""
