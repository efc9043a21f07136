# catalog_auth/adapters/outbound/persistence/database.py

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import event, text
from sqlalchemy.pool import StaticPool

from catalog_auth.adapters.configuration.config import Settings
from catalog_auth.adapters.outbound.persistence.models import Base

# Configure logger
logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the async engine and session factory for one application instance.

    Created in the application lifespan and disposed on shutdown.
    """

    def __init__(self, url: str, *, echo: bool = False, pool_size: int = 20, max_overflow: int = 10):
        self.url = url
        logger.info(f"Connecting to database: {url.split('@')[-1]}")

        try:
            if url.startswith("sqlite"):
                # Shared single connection so in-memory databases survive across sessions
                self.engine: AsyncEngine = create_async_engine(
                    url,
                    echo=echo,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
                event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
            else:
                self.engine = create_async_engine(
                    url,
                    echo=echo,
                    pool_size=pool_size,
                    max_overflow=max_overflow,
                    pool_timeout=30,
                    pool_recycle=1800,
                    pool_pre_ping=True,
                )

            self.session_factory = async_sessionmaker(
                autoflush=False,
                bind=self.engine,
                expire_on_commit=False,
            )
            logger.info("Async database connection configured successfully")

        except SQLAlchemyError as e:
            logger.error(f"Error connecting to database: {str(e)}")
            raise

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )

    async def create_all(self) -> None:
        """Create tables that do not exist yet (migrations remain the source of truth in production)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database ping failed: {str(e)}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provides an async session, committing on success and rolling back on error.

        Example:
            ```python
            async with database.session() as db:
                result = await db.execute(select(ClientRegistration))
            ```
        """
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

