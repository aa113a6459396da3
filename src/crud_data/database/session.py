from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)

from crud_data.config import Settings, get_settings


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Create an AsyncEngine for settings.DATABASE_URL.

    An in-memory SQLite database only lives as long as its connection, so for such URLs
    every checkout shares a single connection (StaticPool).
    """
    url = make_url(settings.DATABASE_URL)

    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        return create_async_engine(
            url,
            echo=settings.SQLALCHEMY_ECHO,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

    return create_async_engine(
        url,
        echo=settings.SQLALCHEMY_ECHO,   # Set to False in production
        pool_pre_ping=True,              # Enables connection health checks
    )


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: entities stay readable after commit without a lazy reload,
    # which asyncio sessions cannot do implicitly
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return make_session_factory(create_engine_from_settings(get_settings()))


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session from the default factory and close it afterwards.

    Usage (FastAPI-style dependency):
        async def endpoint(db: AsyncSession = Depends(get_async_session)):
            service = CrudService(CrudRepository(UserData, UserEntity, SQLAlchemyBackend(db)))
    """
    async with get_session_factory()() as session:
        yield session
