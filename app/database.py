"""
Database engine, session factory and declarative base
"""
import logging
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class Base(DeclarativeBase):
    """Declarative base for all models"""


def utcnow() -> datetime:
    """Timezone-aware current time used for model timestamps"""
    return datetime.now(timezone.utc)


engine = create_async_engine(settings.database_url, echo=settings.db_echo)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for the duration of a request"""
    async with async_session_factory() as session:
        yield session


async def init_db() -> None:
    """Create tables that do not exist yet"""
    # Import models so they are registered on the metadata
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")


async def close_db() -> None:
    """Dispose of the connection pool"""
    await engine.dispose()
    logger.info("Database connections closed")
