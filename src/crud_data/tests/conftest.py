"""
Core pytest configuration for the entire test suite.

Only the database setup and logging installation live here. Domain fixtures
(repositories, services, sample records) are in tests/test_fixtures/.
"""

from __future__ import annotations

import os
import logging
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning
# -------------------------------
# Quiet noisy third-party loggers before importing modules that initialize them.
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from crud_data.config import Settings
from crud_data.core.logging import setup_logging
from crud_data.database import Base, create_engine_from_settings, make_session_factory
from .test_fixtures import models  # noqa: F401 - import to register entities with Base.metadata

# CI can point the suite at a real database; locally an in-memory SQLite is enough.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

test_settings = Settings(ENV="testing", DATABASE_URL=TEST_DATABASE_URL, LOG_FORMAT="text", LOG_TO_STDOUT=True)


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """
    Install the package logging configuration once for the whole session, so formatters
    and filters are the ones used in production. pytest's caplog handler is added per
    test afterwards, so caplog keeps working.
    """
    setup_logging(test_settings)
    yield


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------


@pytest.fixture()
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Engine with all tables created. Function-scoped: every test gets a fresh database
    (an in-memory SQLite lives and dies with its engine).
    """
    engine = create_engine_from_settings(test_settings)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture()
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    Session for one test. Repositories only flush, so nothing is committed and the
    rollback at the end discards everything the test wrote.
    """
    maker = make_session_factory(async_engine)
    async with maker() as session:
        yield session
        await session.rollback()


# Repository / service fixtures
from .test_fixtures.repository_fixtures import (  # noqa: E402
    backend,
    user_repository,
    user_service,
    sample_user,
    create_user,
    created_user,
    multiple_users,
)
