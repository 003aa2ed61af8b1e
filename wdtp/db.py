"""Database engine, session factory and FastAPI session dependency."""
import logging
import time
from typing import AsyncGenerator

from sqlalchemy import MetaData, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .core.config import settings

logger = logging.getLogger(__name__)

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all database models."""

    metadata = MetaData(naming_convention=convention)


def create_session_factory(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 20,
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create an async engine and its session factory."""
    kwargs = {"echo": echo, "pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        kwargs.update(pool_size=pool_size, max_overflow=max_overflow, pool_recycle=1800)
    engine = create_async_engine(database_url, **kwargs)
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return session_factory, engine


async_session, engine = create_session_factory(settings.database_url, echo=settings.database_echo)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request."""
    async with async_session() as session:
        yield session


async def init_db():
    """Create tables that do not exist yet."""
    # models must be imported so their tables are registered on Base.metadata
    from .models import location, organization, wage_report  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def health_check(session: AsyncSession) -> dict:
    """Check database connection health"""
    start = time.time()
    try:
        await session.execute(text("SELECT 1"))
        latency = (time.time() - start) * 1000
        return {"healthy": True, "latency_ms": latency, "error": None}
    except Exception as e:
        latency = (time.time() - start) * 1000
        logger.error(f"Database health check failed: {e}")
        return {"healthy": False, "latency_ms": latency, "error": str(e)}


async def close_db():
    await engine.dispose()
    logger.info("Database engine closed")
