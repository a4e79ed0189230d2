# storefront/data/database.py
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from storefront.utils.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()


class Database:
    """
    Owns the async engine and the session factory.
    Created by the process entry point (app factory, celery task) and
    disposed by it, nothing else holds a global connection.
    """

    def __init__(self, url: str, engine: AsyncEngine | None = None, echo: bool = False):
        self.url = url
        self.engine = engine or create_async_engine(url, echo=echo, pool_pre_ping=True)
        #objects stay readable after commit, async sessions cannot lazy-refresh
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_all(self) -> None:
        #import models so they register in Base.metadata
        import storefront.data.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Tables ready: {list(Base.metadata.tables.keys())}")

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
