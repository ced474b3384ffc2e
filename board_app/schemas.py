from datetime import datetime
from typing import Annotated, Dict, List

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from board_app.models import Comment, Post, PostLike, now
from board_app.repositories import Page


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


NotBlankStr = Annotated[str, AfterValidator(_not_blank)]


# --- Requests ---

class CreatePostRequest(CamelModel):
    title: NotBlankStr = Field(max_length=200)
    content: NotBlankStr
    author: NotBlankStr = Field(max_length=50)

    def to_entity(self) -> Post:
        created = now()
        return Post(
            title=self.title,
            content=self.content,
            author=self.author,
            created_at=created,
            updated_at=created,
        )


class UpdatePostRequest(CamelModel):
    title: NotBlankStr = Field(max_length=200)
    content: NotBlankStr


class CreateCommentRequest(CamelModel):
    content: NotBlankStr
    author: NotBlankStr = Field(max_length=50)

    def to_entity(self) -> Comment:
        created = now()
        return Comment(
            content=self.content,
            author=self.author,
            created_at=created,
            updated_at=created,
        )


class UpdateCommentRequest(CamelModel):
    content: NotBlankStr


# --- Responses ---

class CommentResponse(CamelModel):
    id: int
    content: str
    author: str
    created_at: datetime
    updated_at: datetime
    post_id: int

    @classmethod
    def from_entity(cls, comment: Comment) -> "CommentResponse":
        return cls.model_validate(comment)


class PostResponse(CamelModel):
    id: int
    title: str
    content: str
    author: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, post: Post) -> "PostResponse":
        return cls.model_validate(post)


class PostDetailResponse(PostResponse):
    comments: List[CommentResponse]
    comment_count: int
    like_count: int

    @classmethod
    def of(cls, post: Post, like_count: int) -> "PostDetailResponse":
        """Merge a post (comments already loaded) with its like count."""
        comments = [CommentResponse.from_entity(c) for c in post.comments]
        return cls(
            id=post.id,
            title=post.title,
            content=post.content,
            author=post.author,
            created_at=post.created_at,
            updated_at=post.updated_at,
            comments=comments,
            comment_count=len(comments),
            like_count=like_count,
        )


class PostListResponse(CamelModel):
    posts: List[PostResponse]
    total_elements: int
    total_pages: int
    current_page: int
    size: int

    @classmethod
    def from_page(cls, page: Page[Post]) -> "PostListResponse":
        return cls(
            posts=[PostResponse.from_entity(p) for p in page.content],
            total_elements=page.total_elements,
            total_pages=page.total_pages,
            current_page=page.page,
            size=page.size,
        )


class LikeResponse(CamelModel):
    post_id: int
    user_id: int
    message: str


class LikeCountResponse(CamelModel):
    post_id: int
    count: int


class LikeCheckResponse(CamelModel):
    post_id: int
    user_id: int
    is_liked: bool


class LikeInfo(CamelModel):
    id: int
    post_id: int
    user_id: int
    created_at: datetime

    @classmethod
    def from_entity(cls, like: PostLike) -> "LikeInfo":
        return cls.model_validate(like)


class LikeListResponse(CamelModel):
    post_id: int
    count: int
    likes: List[LikeInfo]


class ErrorResponse(CamelModel):
    status: int
    error: str
    message: str
    errors: Dict[str, str] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=now)
