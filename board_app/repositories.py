"""
Repository layer.

Repositories translate typed lookups and search conditions into SQLAlchemy
statements against a single ``AsyncSession``. They flush but never commit;
transaction boundaries belong to the services. Absent rows come back as
``None`` rather than raising.
"""
import enum
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Generic, List, Optional, TypeVar

from sqlalchemy import delete, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from board_app.exceptions import InvalidRequestError
from board_app.models import Comment, Post, PostLike

T = TypeVar("T")


class SortDirection(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortDirection":
        """Unknown or missing directions fall back to DESC."""
        if value and value.strip().upper() in ("ASC", "ASCENDING"):
            return cls.ASC
        return cls.DESC


@dataclass
class PageRequest:
    page: int = 0
    size: int = 20
    sort_by: str = "createdAt"
    direction: SortDirection = SortDirection.DESC

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass
class Page(Generic[T]):
    content: List[T]
    total_elements: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total_elements / self.size)


@dataclass
class PostSearchCondition:
    """Optional predicates for post search. Every provided field is ANDed."""

    title_contains: Optional[str] = None
    content_contains: Optional[str] = None
    author_equals: Optional[str] = None
    authors_in: List[str] = field(default_factory=list)
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None
    updated_after: Optional[datetime] = None
    updated_before: Optional[datetime] = None
    min_comment_count: Optional[int] = None
    max_comment_count: Optional[int] = None
    keyword: Optional[str] = None

    @property
    def has_comment_count_range(self) -> bool:
        return self.min_comment_count is not None or self.max_comment_count is not None


# Request-facing sort keys -> mapped columns
POST_SORT_COLUMNS = {
    "id": Post.id,
    "title": Post.title,
    "author": Post.author,
    "createdAt": Post.created_at,
    "updatedAt": Post.updated_at,
}


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _as_naive_local(value: datetime) -> datetime:
    # timestamp columns are naive local time
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _keyword_clause(keyword: str):
    return or_(
        Post.title.icontains(keyword, autoescape=True),
        Post.content.icontains(keyword, autoescape=True),
    )


def build_post_conditions(condition: PostSearchCondition) -> list:
    """Compile a search condition into WHERE clauses (comment counts excluded)."""
    clauses = []

    if not _is_blank(condition.title_contains):
        clauses.append(Post.title.icontains(condition.title_contains, autoescape=True))
    if not _is_blank(condition.content_contains):
        clauses.append(Post.content.icontains(condition.content_contains, autoescape=True))
    if not _is_blank(condition.author_equals):
        clauses.append(Post.author == condition.author_equals)
    if condition.authors_in:
        clauses.append(Post.author.in_(condition.authors_in))

    if condition.created_after is not None:
        clauses.append(Post.created_at >= _as_naive_local(condition.created_after))
    if condition.created_before is not None:
        clauses.append(Post.created_at <= _as_naive_local(condition.created_before))
    if condition.updated_after is not None:
        clauses.append(Post.updated_at >= _as_naive_local(condition.updated_after))
    if condition.updated_before is not None:
        clauses.append(Post.updated_at <= _as_naive_local(condition.updated_before))

    if not _is_blank(condition.keyword):
        clauses.append(_keyword_clause(condition.keyword))

    return clauses


def _order_by(page_request: PageRequest):
    column = POST_SORT_COLUMNS.get(page_request.sort_by)
    if column is None:
        raise InvalidRequestError(
            f"Unsupported sort property: {page_request.sort_by}. "
            f"Expected one of {sorted(POST_SORT_COLUMNS)}"
        )
    if page_request.direction == SortDirection.ASC:
        return column.asc(), Post.id.asc()
    return column.desc(), Post.id.desc()


class PostRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, post_id: int) -> Optional[Post]:
        return await self.session.get(Post, post_id)

    async def find_by_id_with_comments(self, post_id: int) -> Optional[Post]:
        # joinedload keeps this to a single round trip
        stmt = (
            select(Post)
            .options(joinedload(Post.comments))
            .where(Post.id == post_id)
        )
        result = await self.session.execute(stmt)
        # unique() is required when using joinedload with 1:N relationships
        return result.unique().scalars().first()

    async def exists_by_id(self, post_id: int) -> bool:
        return bool(await self.session.scalar(select(exists().where(Post.id == post_id))))

    async def _paged(self, stmt, order_by, page_request: PageRequest) -> Page[Post]:
        total = await self.session.scalar(select(func.count()).select_from(stmt.subquery()))
        rows = await self.session.scalars(
            stmt.order_by(*order_by).offset(page_request.offset).limit(page_request.size)
        )
        return Page(
            content=list(rows),
            total_elements=total or 0,
            page=page_request.page,
            size=page_request.size,
        )

    async def find_all(self, page_request: PageRequest) -> Page[Post]:
        return await self._paged(select(Post), _order_by(page_request), page_request)

    async def search(self, condition: PostSearchCondition, page_request: PageRequest) -> Page[Post]:
        stmt = select(Post).where(*build_post_conditions(condition))

        if condition.has_comment_count_range:
            # comment count is not stored, so filter on the aggregate (HAVING)
            comment_count = func.count(Comment.id)
            stmt = stmt.outerjoin(Comment, Comment.post_id == Post.id).group_by(Post.id)
            if condition.min_comment_count is not None:
                stmt = stmt.having(comment_count >= condition.min_comment_count)
            if condition.max_comment_count is not None:
                stmt = stmt.having(comment_count <= condition.max_comment_count)

        return await self._paged(stmt, (Post.created_at.desc(), Post.id.desc()), page_request)

    async def search_by_keyword(self, keyword: str, page_request: PageRequest) -> Page[Post]:
        stmt = select(Post)
        if not _is_blank(keyword):
            stmt = stmt.where(_keyword_clause(keyword))
        return await self._paged(stmt, _order_by(page_request), page_request)

    async def find_recent(self, days: int, page_request: PageRequest) -> Page[Post]:
        since = datetime.now() - timedelta(days=days)
        return await self.search(PostSearchCondition(created_after=since), page_request)

    async def find_popular(self, limit: int) -> List[Post]:
        stmt = (
            select(Post)
            .outerjoin(Comment, Comment.post_id == Post.id)
            .group_by(Post.id)
            .order_by(func.count(Comment.id).desc(), Post.created_at.desc(), Post.id.desc())
            .limit(limit)
        )
        return list(await self.session.scalars(stmt))

    async def count_by_author(self) -> Dict[str, int]:
        stmt = select(Post.author, func.count(Post.id)).group_by(Post.author)
        result = await self.session.execute(stmt)
        return {author: count for author, count in result.all()}

    async def add(self, post: Post) -> Post:
        self.session.add(post)
        await self.session.flush()
        return post

    async def delete(self, post: Post) -> None:
        await self.session.delete(post)
        await self.session.flush()


class CommentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, comment_id: int) -> Optional[Comment]:
        return await self.session.get(Comment, comment_id)

    async def find_by_id_with_post(self, comment_id: int) -> Optional[Comment]:
        stmt = (
            select(Comment)
            .options(joinedload(Comment.post).selectinload(Post.comments))
            .where(Comment.id == comment_id)
        )
        result = await self.session.execute(stmt)
        return result.unique().scalars().first()

    async def find_by_post_id(self, post_id: int) -> List[Comment]:
        stmt = select(Comment).where(Comment.post_id == post_id).order_by(Comment.id)
        return list(await self.session.scalars(stmt))

    async def find_by_author(self, author: str) -> List[Comment]:
        stmt = select(Comment).where(Comment.author == author).order_by(Comment.id)
        return list(await self.session.scalars(stmt))

    async def add(self, comment: Comment) -> Comment:
        self.session.add(comment)
        await self.session.flush()
        return comment

    async def delete(self, comment: Comment) -> None:
        await self.session.delete(comment)
        await self.session.flush()


class PostLikeRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists_by_post_id_and_user_id(self, post_id: int, user_id: int) -> bool:
        stmt = select(
            exists().where(PostLike.post_id == post_id, PostLike.user_id == user_id)
        )
        return bool(await self.session.scalar(stmt))

    async def count_by_post_id(self, post_id: int) -> int:
        stmt = select(func.count(PostLike.id)).where(PostLike.post_id == post_id)
        return await self.session.scalar(stmt) or 0

    async def find_all_by_post_id(self, post_id: int) -> List[PostLike]:
        stmt = select(PostLike).where(PostLike.post_id == post_id).order_by(PostLike.id)
        return list(await self.session.scalars(stmt))

    async def find_all_by_user_id(self, user_id: int) -> List[PostLike]:
        stmt = select(PostLike).where(PostLike.user_id == user_id).order_by(PostLike.id)
        return list(await self.session.scalars(stmt))

    async def add(self, like: PostLike) -> PostLike:
        self.session.add(like)
        await self.session.flush()
        return like

    async def delete_by_post_id_and_user_id(self, post_id: int, user_id: int) -> int:
        stmt = delete(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.rowcount

    async def delete_all_by_post_id(self, post_id: int) -> int:
        result = await self.session.execute(delete(PostLike).where(PostLike.post_id == post_id))
        return result.rowcount
