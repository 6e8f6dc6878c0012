"""
Conduit Backend: User and Follow Models
========================================

What:  ORM models for the `users` and `follows` tables.
Who:   Used by the user/profile services and joined by the article list query.

Table Design:
    - Integer primary key (autoincrement on SQLite, MySQL and PostgreSQL)
    - username and email are unique; email is stored lower-cased
    - password_hash holds an argon2 hash, never the plaintext
    - follows is a pure association table keyed on (follower_id, followee_id);
      the article list query joins it on followee_id = author id and
      follower_id = the requesting user's id
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from conduit.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A registered Conduit user.

    Query Patterns:
        - Login:        SELECT ... WHERE email = :email
        - Profile:      SELECT ... WHERE username = :username
        - Token lookup: SELECT ... WHERE id = :sub
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    username: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    image: Mapped[Optional[str]] = mapped_column(String(512), nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"


class Follow(Base):
    """`follower_id` follows `followee_id`."""

    __tablename__ = "follows"

    follower_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    followee_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Follow({self.follower_id} -> {self.followee_id})>"
