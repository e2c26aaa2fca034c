"""SQL-backed key-value store: each collection is one JSON row in kv_collections."""

import logging
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from hse_inspect.core.database import check_db_connected
from hse_inspect.models import Base, KVCollection
from hse_inspect.store.base import KeyValueStore

logger = logging.getLogger(__name__)


class SqlStore(KeyValueStore):
    """
    Whole-document reads and writes through a SQLAlchemy session factory.

    Each call uses its own short-lived session and commits before returning.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        super().__init__()
        self._session_factory = session_factory

    def create_tables(self) -> None:
        """Create kv_collections when running without Alembic (dev, SQLite)."""
        Base.metadata.create_all(self._session_factory.kw["bind"])

    def load(self, name: str, default: Any = None) -> Any:
        db = self._session_factory()
        try:
            row = db.get(KVCollection, name)
            if row is None or row.value is None:
                return default
            return row.value
        finally:
            db.close()

    def save(self, name: str, value: Any) -> None:
        db = self._session_factory()
        try:
            row = db.get(KVCollection, name)
            if row is None:
                db.add(KVCollection(name=name, value=value))
            else:
                row.value = value
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to save collection %s", name)
            raise
        finally:
            db.close()

    def remove(self, name: str) -> None:
        db = self._session_factory()
        try:
            db.query(KVCollection).filter(KVCollection.name == name).delete(
                synchronize_session=False
            )
            db.commit()
        finally:
            db.close()

    def ping(self) -> bool:
        db = self._session_factory()
        try:
            return check_db_connected(db)
        finally:
            db.close()
