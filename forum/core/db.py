from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

from forum.core.config import settings
from forum.core.logger import get_logger

logger = get_logger(__name__)


Base = declarative_base()


# SQLite connections are cheap; open one per session instead of pooling
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    future=True,
    poolclass=NullPool,
)

logger.info("Async SQLAlchemy engine created (url=%s echo=%s)", settings.DATABASE_URL, settings.DB_ECHO)


async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_models() -> None:
    """
    Create any missing tables.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    """
    Provide an async SQLAlchemy session for each request.
    """
    logger.debug("Opening async DB session")
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            logger.debug("Async DB session closed")
