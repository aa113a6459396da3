from .base import Base
from .session import create_engine_from_settings, make_session_factory, get_session_factory, get_async_session

__all__ = [
    "Base",
    "create_engine_from_settings",
    "make_session_factory",
    "get_session_factory",
    "get_async_session",
]
