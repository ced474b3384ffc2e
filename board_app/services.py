"""
Service layer.

``PostService`` assembles the post detail view in two interchangeable ways:

* sequential: the post (with comments) and its like count are read one
  after the other on the request session. Latency is the sum of both reads.
* concurrent: both reads are scheduled as separate asyncio tasks, each on
  its own session and therefore its own connection, and joined once both
  have settled. Latency is roughly the slower of the two reads.

The two reads share no state, so running them concurrently needs no locking.
Only use the concurrent shape for reads that are independent like these.

Write methods run inside one transaction each (see ``transactional``).
"""
import asyncio
import functools
import logging
import time
from typing import Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from board_app.exceptions import (
    CommentNotFoundError,
    DuplicateLikeError,
    LikeNotFoundError,
    PostNotFoundError,
)
from board_app.models import PostLike
from board_app.repositories import (
    CommentRepository,
    PageRequest,
    PostLikeRepository,
    PostRepository,
    PostSearchCondition,
)
from board_app.schemas import (
    CommentResponse,
    CreateCommentRequest,
    CreatePostRequest,
    LikeInfo,
    PostDetailResponse,
    PostListResponse,
    PostResponse,
    UpdateCommentRequest,
    UpdatePostRequest,
)

logger = logging.getLogger(__name__)


def transactional(method):
    """Commit the service session when ``method`` returns, roll back if it raises."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            result = await method(self, *args, **kwargs)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result

    return wrapper


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class PostService:
    def __init__(self, session: AsyncSession, session_factory: async_sessionmaker):
        self.session = session
        self.session_factory = session_factory
        self.posts = PostRepository(session)
        self.likes = PostLikeRepository(session)

    async def get_post_sync(self, post_id: int) -> PostDetailResponse:
        start = time.perf_counter()

        post = await self.posts.find_by_id_with_comments(post_id)
        if post is None:
            raise PostNotFoundError(post_id)

        like_count = await self.likes.count_by_post_id(post_id)

        logger.info("[sync] post %s assembled in %.2fms", post_id, _elapsed_ms(start))
        return PostDetailResponse.of(post, like_count)

    async def _read_post_with_comments(self, post_id: int):
        async with self.session_factory() as session:
            return await PostRepository(session).find_by_id_with_comments(post_id)

    async def _read_like_count(self, post_id: int) -> int:
        async with self.session_factory() as session:
            return await PostLikeRepository(session).count_by_post_id(post_id)

    async def get_post_async(self, post_id: int) -> PostDetailResponse:
        start = time.perf_counter()

        # return_exceptions: both reads settle before we decide, nothing is cancelled
        post, like_count = await asyncio.gather(
            self._read_post_with_comments(post_id),
            self._read_like_count(post_id),
            return_exceptions=True,
        )

        # the post read decides first; a like count for a missing post is discarded
        if isinstance(post, BaseException):
            raise post
        if post is None:
            raise PostNotFoundError(post_id)
        if isinstance(like_count, BaseException):
            raise like_count

        logger.info("[async] post %s assembled in %.2fms", post_id, _elapsed_ms(start))
        return PostDetailResponse.of(post, like_count)

    async def get_post(self, post_id: int) -> PostDetailResponse:
        return await self.get_post_sync(post_id)

    async def get_posts(self, page_request: PageRequest) -> PostListResponse:
        page = await self.posts.find_all(page_request)
        return PostListResponse.from_page(page)

    async def search_posts(self, keyword: str, page_request: PageRequest) -> PostListResponse:
        page = await self.posts.search_by_keyword(keyword, page_request)
        return PostListResponse.from_page(page)

    async def search_posts_advanced(
        self, condition: PostSearchCondition, page_request: PageRequest
    ) -> PostListResponse:
        page = await self.posts.search(condition, page_request)
        return PostListResponse.from_page(page)

    async def get_recent_posts(self, days: int, page_request: PageRequest) -> PostListResponse:
        page = await self.posts.find_recent(days, page_request)
        return PostListResponse.from_page(page)

    async def get_popular_posts(self, limit: int) -> List[PostResponse]:
        return [PostResponse.from_entity(p) for p in await self.posts.find_popular(limit)]

    async def count_posts_by_author(self) -> Dict[str, int]:
        return await self.posts.count_by_author()

    @transactional
    async def create_post(self, request: CreatePostRequest) -> PostResponse:
        post = await self.posts.add(request.to_entity())
        logger.info("Created post %s", post.id)
        return PostResponse.from_entity(post)

    @transactional
    async def update_post(self, post_id: int, request: UpdatePostRequest) -> PostResponse:
        post = await self.posts.find_by_id(post_id)
        if post is None:
            raise PostNotFoundError(post_id)

        post.update(request.title, request.content)
        await self.session.flush()
        return PostResponse.from_entity(post)

    @transactional
    async def delete_post(self, post_id: int) -> None:
        # comments are loaded so the ORM cascade removes them with the post
        post = await self.posts.find_by_id_with_comments(post_id)
        if post is None:
            raise PostNotFoundError(post_id)

        removed_likes = await self.likes.delete_all_by_post_id(post_id)
        await self.posts.delete(post)
        logger.info(
            "Deleted post %s with %d comments and %d likes",
            post_id, len(post.comments), removed_likes,
        )


class CommentService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.posts = PostRepository(session)
        self.comments = CommentRepository(session)

    async def get_comments_by_post_id(self, post_id: int) -> List[CommentResponse]:
        return [CommentResponse.from_entity(c) for c in await self.comments.find_by_post_id(post_id)]

    async def get_comments_by_author(self, author: str) -> List[CommentResponse]:
        return [CommentResponse.from_entity(c) for c in await self.comments.find_by_author(author)]

    @transactional
    async def create_comment(self, post_id: int, request: CreateCommentRequest) -> CommentResponse:
        post = await self.posts.find_by_id_with_comments(post_id)
        if post is None:
            raise PostNotFoundError(post_id)

        comment = request.to_entity()
        post.add_comment(comment)
        await self.comments.add(comment)
        return CommentResponse.from_entity(comment)

    @transactional
    async def update_comment(
        self, post_id: int, comment_id: int, request: UpdateCommentRequest
    ) -> CommentResponse:
        comment = await self.comments.find_by_id(comment_id)
        if comment is None or comment.post_id != post_id:
            raise CommentNotFoundError(comment_id)

        comment.update(request.content)
        await self.session.flush()
        return CommentResponse.from_entity(comment)

    @transactional
    async def delete_comment(self, post_id: int, comment_id: int) -> None:
        comment = await self.comments.find_by_id_with_post(comment_id)
        if comment is None or comment.post_id != post_id:
            raise CommentNotFoundError(comment_id)

        if comment.post is not None:
            comment.post.remove_comment(comment)
        await self.comments.delete(comment)


class PostLikeService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.posts = PostRepository(session)
        self.likes = PostLikeRepository(session)

    @transactional
    async def add_like(self, post_id: int, user_id: int) -> PostLike:
        if not await self.posts.exists_by_id(post_id):
            raise PostNotFoundError(post_id)

        if await self.likes.exists_by_post_id_and_user_id(post_id, user_id):
            raise DuplicateLikeError(post_id, user_id)

        try:
            return await self.likes.add(PostLike(post_id=post_id, user_id=user_id))
        except IntegrityError as e:
            # lost a race with a concurrent like from the same user
            raise DuplicateLikeError(post_id, user_id) from e

    @transactional
    async def remove_like(self, post_id: int, user_id: int) -> None:
        # a missing like is reported, not silently ignored
        if not await self.likes.exists_by_post_id_and_user_id(post_id, user_id):
            raise LikeNotFoundError(post_id, user_id)

        await self.likes.delete_by_post_id_and_user_id(post_id, user_id)

    async def get_like_count(self, post_id: int) -> int:
        return await self.likes.count_by_post_id(post_id)

    async def is_liked_by_user(self, post_id: int, user_id: int) -> bool:
        return await self.likes.exists_by_post_id_and_user_id(post_id, user_id)

    async def get_likes_by_post_id(self, post_id: int) -> List[LikeInfo]:
        return [LikeInfo.from_entity(like) for like in await self.likes.find_all_by_post_id(post_id)]

    async def get_likes_by_user_id(self, user_id: int) -> List[LikeInfo]:
        return [LikeInfo.from_entity(like) for like in await self.likes.find_all_by_user_id(user_id)]
