"""
Conduit Backend: Article Filter Clauses
=========================================

What:  Turns one typed article filter into a SQL predicate.
How:   Each FilterKind has a clause builder registered in `CLAUSE_BUILDERS`.
       A builder receives the filter's values and returns a SQLAlchemy boolean
       expression; every value becomes a bound parameter, never SQL text.
Who:   Called by the article query assembler (conduit.queries.articles).

Predicate Shapes:
    TAG        articles.id IN (SELECT article_tags.article_id
                               FROM article_tags
                               WHERE article_tags.tag IN (...))
    AUTHOR     users.username IN (...)         -- the joined author row
    FAVORITED  articles.id IN (SELECT favorited_by.article_id
                               FROM favorites AS favorited_by
                               JOIN users AS favoriting_user ON ...
                               WHERE favoriting_user.username IN (...))

    The favorites and users tables also appear in the outer listing query,
    so the FAVORITED subquery works on aliases to keep the two apart.
"""

import enum
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import ColumnElement, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import aliased

from conduit.exceptions import QueryBuildError
from conduit.models import Article, ArticleTag, Favorite, User


class FilterKind(str, enum.Enum):
    """Closed set of article list filters, valued by their query parameter."""

    TAG = "tag"
    AUTHOR = "author"
    FAVORITED = "favorited"


@dataclass(frozen=True)
class ArticleFilter:
    """One filter kind together with the values it matches (OR within a kind)."""

    kind: FilterKind
    values: Tuple[str, ...] = ()

    @classmethod
    def of(cls, kind: FilterKind, values: Iterable[str]) -> "ArticleFilter":
        """Build a filter, stripping values and dropping blank ones."""
        cleaned = tuple(v.strip() for v in values if v is not None and v.strip())
        return cls(kind=kind, values=cleaned)


ClauseBuilder = Callable[[Sequence[str]], ColumnElement[bool]]

favorited_by = aliased(Favorite, name="favorited_by")
favoriting_user = aliased(User, name="favoriting_user")


def _tag_clause(values: Sequence[str]) -> ColumnElement[bool]:
    tagged = select(ArticleTag.article_id).where(ArticleTag.tag.in_(values))
    return Article.id.in_(tagged)


def _author_clause(values: Sequence[str]) -> ColumnElement[bool]:
    return User.username.in_(values)


def _favorited_clause(values: Sequence[str]) -> ColumnElement[bool]:
    favorited = (
        select(favorited_by.article_id)
        .join(favoriting_user, favoriting_user.id == favorited_by.user_id)
        .where(favoriting_user.username.in_(values))
    )
    return Article.id.in_(favorited)


CLAUSE_BUILDERS: Dict[FilterKind, ClauseBuilder] = {
    FilterKind.TAG: _tag_clause,
    FilterKind.AUTHOR: _author_clause,
    FilterKind.FAVORITED: _favorited_clause,
}


def build_filter_clause(article_filter: ArticleFilter) -> Optional[ColumnElement[bool]]:
    """
    Build the predicate for a single filter.

    Returns:
        The predicate, or None when the filter has no values (it is skipped).

    Raises:
        QueryBuildError: No builder is registered for the filter's kind, or
                         the builder could not produce an expression.
    """
    if not article_filter.values:
        return None

    builder = CLAUSE_BUILDERS.get(article_filter.kind)
    if builder is None:
        raise QueryBuildError(
            message="Unsupported article filter",
            context={"kind": str(article_filter.kind)},
        )

    try:
        return builder(list(article_filter.values))
    except SQLAlchemyError as e:
        raise QueryBuildError(
            context={"kind": article_filter.kind.value, "error": str(e)},
        ) from e


def build_filter_clauses(filters: Iterable[ArticleFilter]) -> List[ColumnElement[bool]]:
    """Predicates for every populated filter, in the order given."""
    clauses = []
    for article_filter in filters:
        clause = build_filter_clause(article_filter)
        if clause is not None:
            clauses.append(clause)
    return clauses
