"""
Storage backends.

Usage:
    from crud_data.backends import SQLAlchemyBackend
    backend = SQLAlchemyBackend(session)
"""

from .base import StorageBackend
from .sqlalchemy_backend import SQLAlchemyBackend

__all__ = ["StorageBackend", "SQLAlchemyBackend"]
