"""SQLAlchemy ORM models."""

from hse_inspect.models.base import Base
from hse_inspect.models.collection import KVCollection

__all__ = ["Base", "KVCollection"]
