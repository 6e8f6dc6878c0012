"""
Conduit Backend: Comment Service
=================================

What:  List, add and delete comments on an article.
Who:   Called by the /api/articles/{slug}/comments route handlers.

Comments are returned oldest first. Only a comment's author may delete it.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from conduit.models import Comment, User
from conduit.models.user import utcnow
from conduit.schemas.article import CommentOut, NewComment
from conduit.services.article_service import article_service
from conduit.services.profile_service import build_profile, profile_service

logger = logging.getLogger(__name__)


def _to_comment_out(comment: Comment, author: User, following: bool) -> CommentOut:
    return CommentOut(
        id=comment.id,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        body=comment.body,
        author=build_profile(author, following),
    )


class CommentService:

    async def list_comments(self, db: AsyncSession, slug: str, viewer: Optional[User] = None) -> List[CommentOut]:
        article = await article_service.get_by_slug(db, slug)
        result = await db.execute(
            select(Comment, User)
            .join(User, User.id == Comment.author_id)
            .where(Comment.article_id == article.id)
            .order_by(Comment.created_at, Comment.id)
        )
        rows = result.all()
        followed = await profile_service.following_ids(
            db, viewer.id if viewer else None, (author.id for _, author in rows)
        )
        return [_to_comment_out(comment, author, author.id in followed) for comment, author in rows]

    async def add_comment(self, db: AsyncSession, slug: str, author: User, data: NewComment) -> CommentOut:
        """
        Raises:
            NotFoundError:   Unknown slug (→ 404)
            ValidationError: Blank body (→ 422)
        """
        if not (data.body or "").strip():
            raise ValidationError("can't be blank", field="body")

        article = await article_service.get_by_slug(db, slug)
        now = utcnow()
        comment = Comment(
            body=data.body,
            article_id=article.id,
            author_id=author.id,
            created_at=now,
            updated_at=now,
        )
        db.add(comment)
        await db.flush()
        logger.info("Comment %s added to article %s by user %s", comment.id, article.id, author.id)
        # A user never follows themselves
        return _to_comment_out(comment, author, False)

    async def delete_comment(self, db: AsyncSession, slug: str, comment_id: int, user: User) -> None:
        """
        Raises:
            NotFoundError:         Unknown slug or comment (→ 404)
            PermissionDeniedError: `user` did not write the comment (→ 403)
        """
        article = await article_service.get_by_slug(db, slug)
        comment = await db.get(Comment, comment_id)
        if comment is None or comment.article_id != article.id:
            raise NotFoundError(resource="comment", resource_id=str(comment_id))
        if comment.author_id != user.id:
            raise PermissionDeniedError(
                "only the author may delete this comment",
                context={"comment_id": comment_id, "user_id": user.id},
            )
        await db.delete(comment)
        await db.flush()
        logger.info("Comment %s deleted", comment_id)


comment_service = CommentService()
