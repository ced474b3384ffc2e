from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event

from board_app.database import build_engine, build_session_factory, get_session_factory
from board_app.main import create_app
from board_app.models import Base, Comment, Post, PostLike


@pytest.fixture
async def engine(tmp_path):
    # file-backed so the concurrent strategy gets real, separate connections
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'board.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(session_factory):
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def make_post(session_factory):
    """Insert a post (optionally with comments) directly and return its id."""

    async def _make(title="T", content="C", author="A", comments=0, created_at=None):
        created_at = created_at or datetime.now()
        post = Post(
            title=title,
            content=content,
            author=author,
            created_at=created_at,
            updated_at=created_at,
        )
        for i in range(comments):
            post.add_comment(Comment(content=f"comment {i}", author="commenter"))
        async with session_factory() as session:
            session.add(post)
            await session.commit()
            return post.id

    return _make


@pytest.fixture
def make_like(session_factory):
    async def _make(post_id, user_id):
        async with session_factory() as session:
            session.add(PostLike(post_id=post_id, user_id=user_id))
            await session.commit()

    return _make
