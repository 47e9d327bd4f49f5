"""Database connection and session management."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from docflow.config import settings
from docflow.models import Base

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions.

    Each request runs in one transaction: committed when the handler returns,
    rolled back when it raises.
    """
    async with async_session_factory() as session:
        async with session.begin():
            yield session


async def init_db() -> None:
    """Initialize database tables and seed lookup data."""
    from docflow.services.documents import StateService

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        async with session.begin():
            await StateService(session).seed()
