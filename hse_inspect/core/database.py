"""SQL engine and session management for the key-value store."""

from functools import lru_cache

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


@lru_cache
def get_engine(database_url: str, echo: bool = False) -> Engine:
    """One engine per URL for the life of the process."""
    kwargs: dict = {"echo": echo}
    if database_url.startswith(("postgres://", "postgres+")):
        database_url = "postgresql" + database_url[len("postgres"):]
    if database_url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a thread pool.
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(database_url, **kwargs)


def make_session_factory(database_url: str, echo: bool = False) -> sessionmaker[Session]:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=get_engine(database_url, echo),
    )


def check_db_connected(session: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        session.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
