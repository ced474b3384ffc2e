from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def now() -> datetime:
    return datetime.now()


class Base(DeclarativeBase):
    pass


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now)

    comments: Mapped[List["Comment"]] = relationship(
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="Comment.id",
    )

    def add_comment(self, comment: "Comment") -> None:
        self.comments.append(comment)
        comment.post = self

    def remove_comment(self, comment: "Comment") -> None:
        self.comments.remove(comment)
        comment.post = None

    def update(self, title: str, content: str) -> None:
        self.title = title
        self.content = content
        self.updated_at = now()

    def __repr__(self):
        return f"<Post(id={self.id}, title='{self.title}', author='{self.author}')>"


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now)
    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    post: Mapped[Optional[Post]] = relationship(back_populates="comments")

    def update(self, content: str) -> None:
        self.content = content
        self.updated_at = now()

    def __repr__(self):
        return f"<Comment(id={self.id}, post_id={self.post_id}, author='{self.author}')>"


class PostLike(Base):
    __tablename__ = "post_likes"
    # Likes reference posts by id only; removal alongside a post is done by the service.
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_post_likes_post_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    post_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=now)

    def __repr__(self):
        return f"<PostLike(post_id={self.post_id}, user_id={self.user_id})>"
