# crud_data/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py                    # App-level errors (RepositoryError, ObjectNotFoundError, ...)
# │   ├── integrity_classifier.py    # SQL-level / DB-specific constraint classification
# │   └── integrity_mapper.py        # Map SQL-level errors to app-level errors

from .base import (
    RepositoryError,
    ObjectNotFoundError,
    InvalidArgumentError,
    RepositoryConfigurationError,
    DuplicateError,
    InvalidFieldError,
    require_not_none,
)

__all__ = [
    "RepositoryError",
    "ObjectNotFoundError",
    "InvalidArgumentError",
    "RepositoryConfigurationError",
    "DuplicateError",
    "InvalidFieldError",
    "require_not_none",
]
