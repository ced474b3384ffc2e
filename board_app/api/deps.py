from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from board_app.database import get_db, get_session_factory
from board_app.services import CommentService, PostLikeService, PostService


def get_post_service(
    db: AsyncSession = Depends(get_db),
    session_factory=Depends(get_session_factory),
) -> PostService:
    return PostService(db, session_factory)


def get_comment_service(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(db)


def get_like_service(db: AsyncSession = Depends(get_db)) -> PostLikeService:
    return PostLikeService(db)
