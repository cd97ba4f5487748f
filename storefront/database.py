"""
Database Connection Module
Handles the async SQLAlchemy engine, session factory and table creation.
"""

import logging
from functools import lru_cache

from sqlalchemy import create_engine, update
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from storefront.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

DATABASE_URL = settings.database_url


def _engine_options(url: str) -> dict:
    """Pool options per backend; SQLite connections are not shared across loops."""
    if url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {
        "pool_size": 5,  # Connection pool size
        "max_overflow": 10,  # Extra connections when pool is full
    }


# Create async engine
engine = create_async_engine(
    DATABASE_URL,
    echo=settings.database_echo,
    **_engine_options(DATABASE_URL),
)

# Session factory - creates new database sessions
async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False  # Objects remain accessible after commit
)


# Base class for all our models
class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and ensures cleanup.
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """
    Create all tables in database.
    Called once at application startup.
    """
    # Register the mapped classes on Base.metadata
    import storefront.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


# =============================================================================
# WORKER ACCESS
# =============================================================================

@lru_cache()
def get_sync_engine() -> Engine:
    """
    Blocking engine for Celery tasks, which run outside the event loop.

    aiosqlite URLs fall back to the stdlib sqlite driver; psycopg URLs
    serve both modes as they are.
    """
    url = make_url(DATABASE_URL)
    if url.drivername == "sqlite+aiosqlite":
        url = url.set(drivername="sqlite")
    return create_engine(url, echo=settings.database_echo, **_engine_options(DATABASE_URL))


def mark_order_exported(order_id: str) -> bool:
    """Flag an order as written to the workbook; False if the row is gone."""
    from storefront.models import Order

    with get_sync_engine().begin() as conn:
        result = conn.execute(
            update(Order).where(Order.id == order_id).values(exported_to_excel=True)
        )
    return result.rowcount > 0
