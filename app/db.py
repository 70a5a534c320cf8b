import logging

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.models.base import Base

log = logging.getLogger(__name__)

DATABASE_URL = settings.database_url
if not DATABASE_URL:
    raise ValueError("❌ DATABASE_URL is not set!")

engine_options = {"echo": settings.sql_echo}
if not DATABASE_URL.startswith("sqlite"):
    # Managed Postgres drops idle connections
    engine_options.update(pool_pre_ping=True, pool_size=settings.db_pool_size)

engine = create_async_engine(DATABASE_URL, **engine_options)

async_session = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db():
    """One session per request. Routes and services commit explicitly."""
    async with async_session() as session:
        yield session


async def create_db_and_tables():
    import app.models  # noqa: F401  registers every model on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("schema ready tables=%s", len(Base.metadata.tables))
