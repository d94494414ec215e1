"""Database engine, session factory and the request-scoped session dependency."""

from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from persona_engine.config import settings


def strip_ssl_query(url: str) -> tuple[str, dict]:
    """Move sslmode/ssl out of the URL; asyncpg rejects them as query params."""
    connect_args: dict = {}
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    sslmode = (query.pop("sslmode", None) or query.pop("ssl", None) or [None])[0]
    if sslmode in ("require", "verify-ca", "verify-full", "true"):
        connect_args["ssl"] = "require"
    new_query = urlencode(query, doseq=True)
    return urlunparse(parsed._replace(query=new_query)), connect_args


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


_db_url, _connect_args = strip_ssl_query(settings.database_url)

engine = create_async_engine(
    _db_url,
    echo=settings.log_level == "DEBUG",
    pool_pre_ping=True,
    connect_args=_connect_args,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for database sessions.

    Commits whatever the route left pending and rolls back on any error, so a
    failed request never leaves half-written rows behind.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
