"""
Database connection and session management
"""
from pathlib import Path

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models"""
    pass


def create_engine_for(database_url: str) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    if make_url(database_url).get_backend_name() == "sqlite":
        return create_async_engine(database_url, echo=False)
    
    return create_async_engine(
        database_url,
        echo=False,
        pool_size=10,
        max_overflow=20
    )


def ensure_database_dir(database_url: str) -> None:
    """SQLite will not create the directory holding its database file."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


async def get_db(request: Request):
    """Dependency for getting database session"""
    async with request.app.state.session_maker() as session:
        yield session
