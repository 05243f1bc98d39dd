# app/data/database.py
import logging

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)


def adapt_database_url(database_url: str) -> str:
    """Return the asyncpg flavour of a PostgreSQL URL."""
    if "sqlite" in database_url.lower():
        raise ValueError("SQLite does not support pgvector.  Use PostgreSQL with asyncpg.")

    if database_url.startswith("postgresql+asyncpg://"):
        return database_url
    for prefix in ("postgresql://", "postgres://"):
        if database_url.startswith(prefix):
            adapted = "postgresql+asyncpg://" + database_url[len(prefix):]
            logger.warning("Adapted database URL to the asyncpg driver.  Please update your configuration.")
            return adapted
    return database_url


def create_engine_from_settings(database_url: str | None = None):
    return create_async_engine(
        adapt_database_url(database_url or settings.DATABASE_URL),
        echo=settings.DATABASE_ECHO,
        connect_args={"timeout": settings.DATABASE_CONNECT_TIMEOUT},
    )


def create_session_factory(engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False, autoflush=False, bind=engine, class_=AsyncSession, expire_on_commit=False
    )


engine = create_engine_from_settings()

AsyncSessionLocal = create_session_factory(engine)

Base = declarative_base()
