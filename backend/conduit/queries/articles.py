"""
Conduit Backend: Article List Query Assembler
==============================================

What:  Builds the SELECT behind GET /api/articles and GET /api/articles/feed.
How:   Pure function of (ListOptions, viewer id, feed flag). No I/O, no
       shared state; the same input always yields the same statement.
Who:   ArticleService executes `statement` and `count_statement` on the
       request's session; tests render them with `to_sql()`.

Statement Layout (fixed order):
    SELECT articles.*, users.*,
           follows.follower_id IS NOT NULL        AS following,
           viewer_favorite.user_id IS NOT NULL    AS favorited,
           (SELECT count(*) FROM favorites AS favorite_counts
            WHERE favorite_counts.article_id = articles.id) AS favorites_count
    FROM articles
    JOIN users ON users.id = articles.author_id
    [LEFT OUTER] JOIN follows
         ON follows.followee_id = users.id AND follows.follower_id = :viewer
    LEFT OUTER JOIN favorites AS viewer_favorite
         ON viewer_favorite.article_id = articles.id
        AND viewer_favorite.user_id = :viewer
    WHERE <filter> AND <filter> ...
    ORDER BY articles.created_at DESC, articles.id DESC
    LIMIT :limit OFFSET :offset

    Feed mode makes the follows join INNER, so only followed authors remain.
    Anonymous viewers use id 0, which matches no follows or favorites row:
    every article comes back with following = favorited = false.
    OFFSET is always emitted, including OFFSET 0.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from sqlalchemy import Select, and_, func, select
from sqlalchemy.dialects import sqlite
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import aliased

from conduit.models import Article, Favorite, Follow, User
from conduit.queries.filters import build_filter_clauses
from conduit.queries.pagination import ListOptions

ANONYMOUS_VIEWER_ID = 0

viewer_favorite = aliased(Favorite, name="viewer_favorite")
favorite_counts = aliased(Favorite, name="favorite_counts")


@dataclass(frozen=True)
class ArticleQuery:
    """An assembled listing: the page query, its count query and bounds."""

    statement: Select
    count_statement: Select
    limit: int
    offset: int

    def to_sql(self, dialect: Optional[Dialect] = None) -> Tuple[str, List[Any]]:
        """
        Render the page query as SQL text plus positional arguments.

        Arguments are listed in the order their placeholders appear in the
        text. Defaults to the SQLite dialect (`?` placeholders).
        """
        return render_statement(self.statement, dialect)


def render_statement(statement: Select, dialect: Optional[Dialect] = None) -> Tuple[str, List[Any]]:
    dialect = dialect or sqlite.dialect()
    compiled = statement.compile(
        dialect=dialect,
        compile_kwargs={"render_postcompile": True},
    )
    params = compiled.params
    if compiled.positiontup is not None:
        args = [params[name] for name in compiled.positiontup]
    else:
        args = list(params.values())
    return str(compiled), args


def _follow_on(viewer: int):
    return and_(Follow.followee_id == User.id, Follow.follower_id == viewer)


def _favorites_count():
    return (
        select(func.count())
        .select_from(favorite_counts)
        .where(favorite_counts.article_id == Article.id)
        .correlate(Article)
        .scalar_subquery()
    )


def article_rows(viewer_id: Optional[int] = None, feed: bool = False) -> Select:
    """
    Article rows with author, viewer flags and favorites count, unfiltered
    and unordered. Single-article lookups add their own WHERE to this.
    """
    viewer = viewer_id or ANONYMOUS_VIEWER_ID
    return (
        select(
            Article,
            User,
            Follow.follower_id.is_not(None).label("following"),
            viewer_favorite.user_id.is_not(None).label("favorited"),
            _favorites_count().label("favorites_count"),
        )
        .select_from(Article)
        .join(User, User.id == Article.author_id)
        .join(Follow, _follow_on(viewer), isouter=not feed)
        .join(
            viewer_favorite,
            and_(
                viewer_favorite.article_id == Article.id,
                viewer_favorite.user_id == viewer,
            ),
            isouter=True,
        )
    )


def build_article_query(
    options: ListOptions,
    viewer_id: Optional[int] = None,
    feed: bool = False,
) -> ArticleQuery:
    """
    Assemble the listing query for `options`.

    Args:
        options:   Bounded limit/offset and typed filters
        viewer_id: Requesting user's id; None or 0 for anonymous requests
        feed:      Restrict to authors the viewer follows (INNER join)

    Raises:
        QueryBuildError: A filter predicate could not be built. Nothing is
                         returned in that case.
    """
    viewer = viewer_id or ANONYMOUS_VIEWER_ID
    clauses = build_filter_clauses(options.populated_filters())

    statement = article_rows(viewer, feed)

    count_statement = (
        select(func.count(Article.id))
        .select_from(Article)
        .join(User, User.id == Article.author_id)
    )
    if feed:
        count_statement = count_statement.join(Follow, _follow_on(viewer))

    if clauses:
        statement = statement.where(*clauses)
        count_statement = count_statement.where(*clauses)

    statement = (
        statement
        .order_by(Article.created_at.desc(), Article.id.desc())
        .limit(options.limit)
        .offset(options.offset)
    )

    return ArticleQuery(
        statement=statement,
        count_statement=count_statement,
        limit=options.limit,
        offset=options.offset,
    )
