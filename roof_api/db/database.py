"""Async SQLAlchemy engine + session factory for the validation store.

The app uses the module-level engine built from settings. Scripts and tests
that point at another database build their own with make_engine().
"""

import logging

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from roof_api.config import settings

logger = logging.getLogger(__name__)

# Seconds a SQLite writer waits on a locked file before failing
SQLITE_BUSY_TIMEOUT = 30


class Base(DeclarativeBase):
    pass


def make_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    connect_args = {}
    if make_url(database_url).get_backend_name() == "sqlite":
        # concurrent inserts serialize on the file lock, then hit the unique index
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT
    return create_async_engine(database_url, echo=echo, connect_args=connect_args)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


async def create_tables(bind: AsyncEngine):
    """Create validated_buildings and its indexes if missing."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


engine = make_engine(settings.database_url, echo=settings.database_echo)
async_session = make_session_factory(engine)


async def get_session() -> AsyncSession:
    async with async_session() as session:
        yield session


async def init_db():
    logger.info("Preparing %s database", engine.dialect.name)
    await create_tables(engine)


async def close_db():
    await engine.dispose()
