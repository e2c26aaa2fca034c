"""Core configuration, persistence wiring, credentials and errors."""

from hse_inspect.core.config import Settings, get_settings
from hse_inspect.core.database import get_engine, make_session_factory

__all__ = ["Settings", "get_settings", "get_engine", "make_session_factory"]
