"""
Conduit Backend: Article Listing Queries
=========================================

What:  Composable, parameter-bound construction of the article list and
       feed queries.

Components (leaf to root):
    - filters.py:     FilterKind / ArticleFilter → SQL predicate
    - pagination.py:  ListOptions, limit/offset bounds, query-string parsing
    - articles.py:    joins, filters, ordering and pagination → ArticleQuery
"""

from conduit.queries.filters import (
    ArticleFilter,
    FilterKind,
    build_filter_clause,
    build_filter_clauses,
)
from conduit.queries.pagination import ListOptions, parse_list_options, resolve_pagination
from conduit.queries.articles import (
    ArticleQuery,
    article_rows,
    build_article_query,
    render_statement,
)

__all__ = [
    "ArticleFilter",
    "ArticleQuery",
    "article_rows",
    "FilterKind",
    "ListOptions",
    "build_article_query",
    "build_filter_clause",
    "build_filter_clauses",
    "parse_list_options",
    "render_statement",
    "resolve_pagination",
]
