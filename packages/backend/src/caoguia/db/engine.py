"""Database access for the credential store and the account services.

Token re-validation queries the database on every protected request, so
the connection pool is the hot resource here: it is bounded by
``CAOGUIA_DB_POOL_SIZE`` + ``CAOGUIA_DB_MAX_OVERFLOW`` and shared by the
whole process. Connections are pinged on checkout so a database restart
does not turn into a burst of failed logins.
"""

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from caoguia.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
)

# Objects stay readable after commit; handlers serialize them afterwards
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """One session per request. Uncommitted work is rolled back on exit."""
    async with async_session_factory() as session:
        yield session
