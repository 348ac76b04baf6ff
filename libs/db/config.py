from typing import Optional

from libs.common.config import Settings, get_settings
from libs.common.logging import get_logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

logger = get_logger(__name__)


class Database:
    """
    Storage client: one async engine plus its session factory.

    Built once at application start-up and disposed on shutdown; request
    handlers receive sessions through ``libs.db.session.get_async_db``.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory = async_sessionmaker(
            bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def ping(self) -> bool:
        """Return True when ``SELECT 1`` round-trips."""
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT 1 AS ok"))
            return result.scalar() == 1

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


def create_database(settings: Optional[Settings] = None) -> Database:
    """Create the storage client from settings."""
    settings = settings or get_settings()
    engine = create_async_engine(
        settings.DATABASE_URL,
        # echo=True for local dev to see SQL queries
        echo=(settings.ENVIRONMENT == "local" and settings.LOG_LEVEL.upper() == "DEBUG"),
        pool_pre_ping=True,  # Test connections before using
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
    )
    logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
    return Database(engine)
