"""ORM model backing the key-value store: one row per named collection."""

from sqlalchemy import JSON, Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import JSONB

from hse_inspect.models.base import Base


class KVCollection(Base):
    """
    A named collection (users, auditLogs, ...) stored as a single JSON document.

    Whole-document reads and writes; per-collection serialization is done by the store.
    """

    __tablename__ = "kv_collections"

    name = Column(String(128), primary_key=True)
    value = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
