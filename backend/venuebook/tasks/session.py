"""Database sessions for Celery tasks.

Each task runs its coroutine under ``asyncio.run``, i.e. on a fresh event
loop, so it gets a fresh engine without pooling rather than the API's
pooled engine.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from venuebook.config import settings


@asynccontextmanager
async def task_session() -> AsyncIterator[AsyncSession]:
    engine = create_async_engine(settings.async_database_url, poolclass=NullPool)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
    finally:
        await engine.dispose()
