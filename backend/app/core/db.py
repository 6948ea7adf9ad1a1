from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings


def create_engine() -> AsyncEngine:
    settings = get_settings()
    return create_async_engine(settings.database_url, pool_pre_ping=True)


engine = create_engine()
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session


@asynccontextmanager
async def begin_tx(session: AsyncSession) -> AsyncIterator[None]:
    # Auth dependencies share the request session and may have autobegun a
    # transaction with their SELECT. Run the write in a SAVEPOINT, then commit.
    if session.in_transaction():
        async with session.begin_nested():
            yield
        await session.commit()
    else:
        async with session.begin():
            yield
