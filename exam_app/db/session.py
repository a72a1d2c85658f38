"""Async engine, session factory and the declarative base."""
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from exam_app.core.config import get_settings

Base = declarative_base()

settings = get_settings()

engine = create_async_engine(settings.database_url, echo=settings.debug)

# expire_on_commit=False: attributes stay readable after commit without a lazy reload
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory dependency; background jobs open their own sessions from it."""
    return AsyncSessionLocal


async def get_db(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as db:
        yield db
