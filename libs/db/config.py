from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from libs.common.config import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database."""
    # echo=True for local dev to see SQL queries
    return create_async_engine(
        settings.DATABASE_URL,
        echo=(settings.ENVIRONMENT == "local"),
        future=True,
        pool_pre_ping=True,  # Test connections before using
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the async session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create any missing tables registered on ``Base.metadata``."""
    from libs.db.base import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
