"""
Async SQLAlchemy session factory.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from storage_import.core.config import settings
from storage_import.db.models import Base


def make_engine(url: str | None = None) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    url = url or settings.DATABASE_URL
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        echo=(settings.APP_ENV == "development"),
        pool_size=20,
        max_overflow=10,
        pool_pre_ping=True,
    )


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = make_engine()

async_session = make_session_factory(engine)


async def init_models(bind: AsyncEngine | None = None) -> None:
    """Create all tables that don't exist yet."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
