"""Async SQLAlchemy engine, session dependency and database client."""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


engine = create_async_engine(
    settings.database_url,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    echo=settings.database_echo,
    # Disable prepared statement cache for PgBouncer (Supabase pooler) compatibility
    connect_args={"statement_cache_size": 0},
)

async_session_maker = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for getting async database session.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


class DatabaseClient:
    """Startup, shutdown and liveness checks for the ingestion database."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def _ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def connect(self) -> None:
        """Fail fast if the database is unreachable."""
        try:
            await self._ping()
        except Exception:
            LOGGER.error("Database connection failed", exc_info=True)
            raise
        LOGGER.info("Database connection successful")

    async def disconnect(self) -> None:
        """Dispose of the engine's connection pool."""
        try:
            await self.engine.dispose()
            LOGGER.info("Database connection closed")
        except Exception as e:
            LOGGER.error(
                "Error closing database connection",
                exc_info=True,
                extra={"error": str(e)}
            )

    async def create_tables(self) -> None:
        """Create the sections and parsed_questions tables when they are missing."""
        # Models must be registered on Base.metadata before create_all
        import app.database.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        LOGGER.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")

    async def health_check(self) -> dict:
        """Report whether ``SELECT 1`` succeeds."""
        try:
            await self._ping()
        except Exception as e:
            LOGGER.error("Database health check failed", extra={"error": str(e)})
            return {"status": "unhealthy", "error": str(e)}
        return {"status": "healthy"}


db_client = DatabaseClient(engine)


async def init_database(create_tables: bool = True) -> None:
    """Check connectivity and optionally create missing tables.

    Args:
        create_tables: Whether to create tables that don't exist yet
    """
    LOGGER.info("Initializing database connection...")
    await db_client.connect()
    if create_tables:
        await db_client.create_tables()
    LOGGER.info("Database initialization completed")


async def close_database() -> None:
    LOGGER.info("Closing database connection...")
    await db_client.disconnect()
