from fastapi import Depends
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from board_app import settings


def build_engine(url=settings.DATABASE_URL, **kwargs):
    connect_args = {}
    engine_kwargs = {"echo": settings.DB_ECHO}

    if url.startswith("postgresql"):
        # PgBouncer transaction mode requires disabling prepared statements in asyncpg
        if "pgbouncer" in url or settings.USE_CONNECTION_POOLING:
            connect_args["statement_cache_size"] = 0
        engine_kwargs["pool_size"] = settings.DB_POOL_SIZE
        engine_kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW

    engine_kwargs.update(kwargs)
    return create_async_engine(url, connect_args=connect_args, **engine_kwargs)


def build_session_factory(bind):
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


engine = build_engine()

AsyncSessionLocal = build_session_factory(engine)


def get_session_factory():
    return AsyncSessionLocal


async def get_db(session_factory=Depends(get_session_factory)):
    async with session_factory() as session:
        yield session
