"""
Conduit Backend: Article, Tag and Favorite Models
==================================================

What:  ORM models for `articles` and its two association tables,
       `article_tags` and `favorites`.
Who:   Written by the article service; read by the article list query
       (conduit.queries) and the tag listing.

Table Design:
    - slug: unique, URL-safe, derived from the title plus a random suffix so
      duplicate titles never collide
    - article_tags stores the tag name directly, keyed on (article_id, tag);
      the distinct set of names is the tag list
    - favorites is keyed on (user_id, article_id); the favorites count is a
      correlated COUNT over this table, not a stored counter
    - created_at is indexed: every listing orders by it, newest first
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from conduit.database import Base
from conduit.models.user import utcnow


class Article(Base):
    """
    A published article.

    Lifecycle:
        1. Created with a fresh slug and equal created/updated timestamps
        2. Updated in place; a new title produces a new slug
        3. Deleted together with its tags, favorites and comments
    """

    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    body: Mapped[str] = mapped_column(Text, nullable=False)

    author_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("idx_articles_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Article(id={self.id}, slug='{self.slug}')>"


class ArticleTag(Base):
    """Tag name attached to an article."""

    __tablename__ = "article_tags"

    article_id: Mapped[int] = mapped_column(
        ForeignKey("articles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)


class Favorite(Base):
    """`user_id` has favorited `article_id`."""

    __tablename__ = "favorites"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    article_id: Mapped[int] = mapped_column(
        ForeignKey("articles.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
