"""
Conduit Backend: Article Service
=================================

What:  Article listing, feed, CRUD, favorites and the tag list.
How:   Listings run the statement assembled by conduit.queries; single
       articles reuse the same row shape via `article_rows()`. Tags live in
       the article_tags table and are loaded for a whole page in one query.
Who:   Called by the /api/articles and /api/tags route handlers.
When:  Per request; the service holds no state of its own.

Listing Flow (GET /api/articles):
    query params ──▶ ListOptions ──▶ build_article_query ──▶ execute page
                                                        └──▶ execute count
    page rows ──▶ load tags for page ids ──▶ ArticleOut list + total count

Slugs:
    slugify("<title>-<6 random hex chars>"), e.g.
    "How to train your dragon" → "how-to-train-your-dragon-5f2b1c".
    A new title on update produces a new slug.
"""

import logging
import secrets
from typing import Dict, Iterable, List, Optional

from slugify import slugify
from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import insert_ignoring_conflicts
from conduit.exceptions import DatabaseError, NotFoundError, PermissionDeniedError, ValidationError
from conduit.models import Article, ArticleTag, Comment, Favorite, User
from conduit.models.user import utcnow
from conduit.queries import ListOptions, article_rows, build_article_query
from conduit.schemas.article import ArticleListResponse, ArticleOut, NewArticle, UpdateArticle
from conduit.services.profile_service import build_profile

logger = logging.getLogger(__name__)

BLANK = "can't be blank"

# Fresh suffixes tried before giving up on a title
SLUG_ATTEMPTS = 3


def make_slug(title: str) -> str:
    return slugify(f"{title}-{secrets.token_hex(3)}")


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Strip, drop blanks, deduplicate and sort."""
    if not tags:
        return []
    return sorted({tag.strip() for tag in tags if tag and tag.strip()})


def _to_article_out(
    article: Article,
    author: User,
    tags: List[str],
    following: bool,
    favorited: bool,
    favorites_count: int,
) -> ArticleOut:
    return ArticleOut(
        slug=article.slug,
        title=article.title,
        description=article.description,
        body=article.body,
        tag_list=tags,
        created_at=article.created_at,
        updated_at=article.updated_at,
        favorited=bool(favorited),
        favorites_count=int(favorites_count or 0),
        author=build_profile(author, bool(following)),
    )


class ArticleService:
    """
    Business logic for articles.

    Error Handling Strategy:
        Missing articles raise NotFoundError, edits by non-authors raise
        PermissionDeniedError. Unexpected SQLAlchemy failures while listing
        are wrapped in DatabaseError; QueryBuildError propagates unchanged.
    """

    # ── Reads ─────────────────────────────────────────────────────────────

    async def load_tags(self, db: AsyncSession, article_ids: Iterable[int]) -> Dict[int, List[str]]:
        """Tag names per article id, each list sorted."""
        ids = list(article_ids)
        tags: Dict[int, List[str]] = {article_id: [] for article_id in ids}
        if not ids:
            return tags
        result = await db.execute(
            select(ArticleTag.article_id, ArticleTag.tag)
            .where(ArticleTag.article_id.in_(ids))
            .order_by(ArticleTag.article_id, ArticleTag.tag)
        )
        for article_id, tag in result.all():
            tags[article_id].append(tag)
        return tags

    async def list_articles(
        self,
        db: AsyncSession,
        options: ListOptions,
        viewer: Optional[User] = None,
        feed: bool = False,
    ) -> ArticleListResponse:
        """
        One page of articles matching `options`, newest first.

        Args:
            options: Bounded pagination and typed filters
            viewer:  Requesting user, or None for anonymous requests
            feed:    Only authors `viewer` follows

        Returns:
            ArticleListResponse whose articlesCount is the total number of
            matching articles, not the page size.

        Raises:
            QueryBuildError: Filter predicate construction failed (→ 500)
            DatabaseError:   Query execution failed (→ 500)
        """
        query = build_article_query(options, viewer.id if viewer else None, feed=feed)

        if logger.isEnabledFor(logging.DEBUG):
            sql, args = query.to_sql()
            logger.debug("Article list query: %s | args=%s", sql, args)

        try:
            rows = (await db.execute(query.statement)).all()
            total = (await db.execute(query.count_statement)).scalar_one()
        except SQLAlchemyError as e:
            logger.error("Database error listing articles: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not retrieve articles. Please try again.",
                context={"error_type": type(e).__name__, "feed": feed},
            ) from e

        tags = await self.load_tags(db, [row[0].id for row in rows])
        articles = [
            _to_article_out(article, author, tags[article.id], following, favorited, count)
            for article, author, following, favorited, count in rows
        ]
        return ArticleListResponse(articles=articles, articles_count=total)

    async def get_by_slug(self, db: AsyncSession, slug: str) -> Article:
        """
        Raises:
            NotFoundError: No article has this slug (→ 404)
        """
        result = await db.execute(select(Article).where(Article.slug == slug))
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFoundError(resource="article", resource_id=slug)
        return article

    async def get_article(self, db: AsyncSession, slug: str, viewer: Optional[User] = None) -> ArticleOut:
        """Single article with the viewer's following/favorited flags."""
        statement = article_rows(viewer.id if viewer else None).where(Article.slug == slug)
        row = (await db.execute(statement)).first()
        if row is None:
            raise NotFoundError(resource="article", resource_id=slug)
        article, author, following, favorited, count = row
        tags = await self.load_tags(db, [article.id])
        return _to_article_out(article, author, tags[article.id], following, favorited, count)

    async def list_tags(self, db: AsyncSession) -> List[str]:
        result = await db.execute(select(ArticleTag.tag).distinct().order_by(ArticleTag.tag))
        return list(result.scalars().all())

    # ── Writes ────────────────────────────────────────────────────────────

    async def _replace_tags(self, db: AsyncSession, article_id: int, tags: List[str]) -> None:
        await db.execute(delete(ArticleTag).where(ArticleTag.article_id == article_id))
        if tags:
            await db.execute(
                insert(ArticleTag),
                [{"article_id": article_id, "tag": tag} for tag in tags],
            )

    async def _available_slug(self, db: AsyncSession, title: str) -> str:
        """
        A slug for `title` that no stored article uses yet.

        Raises:
            DatabaseError: Every attempted suffix was taken (→ 500)
        """
        for _ in range(SLUG_ATTEMPTS):
            slug = make_slug(title)
            taken = await db.execute(select(Article.id).where(Article.slug == slug))
            if taken.first() is None:
                return slug
            logger.warning("Slug collision on %s, retrying", slug)
        raise DatabaseError(context={"title": title, "attempts": SLUG_ATTEMPTS})

    async def _flush_article(self, db: AsyncSession, article: Article) -> None:
        try:
            await db.flush()
        except IntegrityError as e:
            # Another request stored the same slug between check and flush
            logger.error("Could not store article slug=%s: %s", article.slug, e)
            raise DatabaseError(context={"slug": article.slug}) from e

    async def create_article(self, db: AsyncSession, author: User, data: NewArticle) -> ArticleOut:
        """
        Raises:
            ValidationError: title, description or body missing/blank (→ 422)
        """
        errors = {
            field: [BLANK]
            for field in ("title", "description", "body")
            if not (getattr(data, field) or "").strip()
        }
        if errors:
            raise ValidationError(field_errors=errors)

        now = utcnow()
        article = Article(
            slug=await self._available_slug(db, data.title),
            title=data.title.strip(),
            description=data.description,
            body=data.body,
            author_id=author.id,
            created_at=now,
            updated_at=now,
        )
        db.add(article)
        await self._flush_article(db, article)
        await self._replace_tags(db, article.id, normalize_tags(data.tag_list))

        logger.info("Article created: id=%s slug=%s author=%s", article.id, article.slug, author.id)
        return await self.get_article(db, article.slug, author)

    async def _get_owned(self, db: AsyncSession, slug: str, user: User) -> Article:
        article = await self.get_by_slug(db, slug)
        if article.author_id != user.id:
            raise PermissionDeniedError(
                "only the author may modify this article",
                context={"slug": slug, "user_id": user.id},
            )
        return article

    async def update_article(
        self,
        db: AsyncSession,
        slug: str,
        user: User,
        data: UpdateArticle,
    ) -> ArticleOut:
        """
        Partial update by the article's author.

        Raises:
            NotFoundError:         Unknown slug (→ 404)
            PermissionDeniedError: `user` is not the author (→ 403)
            ValidationError:       Nothing to change, or a blank
                                   title/description/body (→ 422)
        """
        article = await self._get_owned(db, slug, user)

        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        if not changes:
            raise ValidationError("no changes supplied", field="article")

        errors = {
            field: [BLANK]
            for field in ("title", "description", "body")
            if field in changes and not changes[field].strip()
        }
        if errors:
            raise ValidationError(field_errors=errors)

        if "title" in changes and changes["title"].strip() != article.title:
            article.title = changes["title"].strip()
            article.slug = await self._available_slug(db, article.title)
        if "description" in changes:
            article.description = changes["description"]
        if "body" in changes:
            article.body = changes["body"]
        article.updated_at = utcnow()
        await self._flush_article(db, article)

        if "tag_list" in changes:
            await self._replace_tags(db, article.id, normalize_tags(changes["tag_list"]))

        logger.info("Article %s updated: %s", article.id, sorted(changes))
        return await self.get_article(db, article.slug, user)

    async def delete_article(self, db: AsyncSession, slug: str, user: User) -> None:
        """Remove the article with its tags, favorites and comments."""
        article = await self._get_owned(db, slug, user)
        article_id = article.id
        await db.execute(delete(ArticleTag).where(ArticleTag.article_id == article_id))
        await db.execute(delete(Favorite).where(Favorite.article_id == article_id))
        await db.execute(delete(Comment).where(Comment.article_id == article_id))
        await db.execute(delete(Article).where(Article.id == article_id))
        logger.info("Article deleted: id=%s slug=%s", article_id, slug)

    async def favorite(self, db: AsyncSession, slug: str, user: User) -> ArticleOut:
        """Mark the article as a favorite of `user` (idempotent)."""
        article = await self.get_by_slug(db, slug)
        await db.execute(
            insert_ignoring_conflicts(db, Favorite).values(user_id=user.id, article_id=article.id)
        )
        return await self.get_article(db, slug, user)

    async def unfavorite(self, db: AsyncSession, slug: str, user: User) -> ArticleOut:
        article = await self.get_by_slug(db, slug)
        await db.execute(
            delete(Favorite).where(
                Favorite.user_id == user.id,
                Favorite.article_id == article.id,
            )
        )
        return await self.get_article(db, slug, user)


# ── Singleton Instance ────────────────────────────────────────────────────
article_service = ArticleService()
