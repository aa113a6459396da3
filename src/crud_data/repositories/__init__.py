"""
Repository layer.

Usage:
    from crud_data.repositories import CrudRepository
"""

from .base_repository import CrudRepository

__all__ = ["CrudRepository"]
