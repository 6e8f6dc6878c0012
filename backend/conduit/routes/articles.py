"""
Conduit Backend: Article Route Handlers
========================================

What:  Listing, feed, CRUD and favorites for articles.
How:   Query-string options are parsed into ListOptions (lenient: bad
       limit/offset values fall back to defaults, never 422) and handed to
       ArticleService, which runs the assembled listing query.

Routes:
    GET    /api/articles                  list, optional auth
    GET    /api/articles/feed             followed authors only, auth
    POST   /api/articles                  create, auth → 201
    GET    /api/articles/{slug}           optional auth
    PUT    /api/articles/{slug}           author only
    DELETE /api/articles/{slug}           author only → 204
    POST   /api/articles/{slug}/favorite  auth, idempotent
    DELETE /api/articles/{slug}/favorite  auth, idempotent

Example:
    GET /api/articles?tag=dragons&author=jake&limit=10&offset=20
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.config import Settings
from conduit.database import get_db_session
from conduit.dependencies import get_app_settings, get_current_user, get_optional_user
from conduit.models import User
from conduit.queries import ListOptions, parse_list_options
from conduit.schemas.article import (
    ArticleListResponse,
    ArticleResponse,
    NewArticleRequest,
    UpdateArticleRequest,
)
from conduit.schemas.common import ErrorResponse
from conduit.services.article_service import article_service

router = APIRouter(prefix="/api/articles", tags=["Articles"])

NOT_FOUND = {404: {"description": "Unknown slug", "model": ErrorResponse}}
FORBIDDEN = {403: {"description": "Not the article's author", "model": ErrorResponse}}


def list_options(
    limit: Optional[str] = Query(default=None, description="Page size (default 20, max 100)"),
    offset: Optional[str] = Query(default=None, description="Articles to skip (default 0)"),
    tag: List[str] = Query(default=[], description="Only articles with this tag (repeatable)"),
    author: List[str] = Query(default=[], description="Only articles by this username (repeatable)"),
    favorited: List[str] = Query(default=[], description="Only articles favorited by this username (repeatable)"),
    settings: Settings = Depends(get_app_settings),
) -> ListOptions:
    return parse_list_options(
        {"limit": limit, "offset": offset, "tag": tag, "author": author, "favorited": favorited},
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )


def feed_options(
    limit: Optional[str] = Query(default=None),
    offset: Optional[str] = Query(default=None),
    settings: Settings = Depends(get_app_settings),
) -> ListOptions:
    return parse_list_options(
        {"limit": limit, "offset": offset},
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )


@router.get("", response_model=ArticleListResponse, summary="List articles, newest first")
async def list_articles(
    options: ListOptions = Depends(list_options),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleListResponse:
    return await article_service.list_articles(db, options, viewer)


@router.get("/feed", response_model=ArticleListResponse, summary="Articles by followed authors")
async def feed_articles(
    options: ListOptions = Depends(feed_options),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleListResponse:
    return await article_service.list_articles(db, options, user, feed=True)


@router.post(
    "",
    response_model=ArticleResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"description": "Missing fields", "model": ErrorResponse}},
)
async def create_article(
    payload: NewArticleRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleResponse:
    return ArticleResponse(article=await article_service.create_article(db, user, payload.article))


@router.get("/{slug}", response_model=ArticleResponse, responses=NOT_FOUND)
async def get_article(
    slug: str,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleResponse:
    return ArticleResponse(article=await article_service.get_article(db, slug, viewer))


@router.put("/{slug}", response_model=ArticleResponse, responses={**NOT_FOUND, **FORBIDDEN})
async def update_article(
    slug: str,
    payload: UpdateArticleRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleResponse:
    return ArticleResponse(article=await article_service.update_article(db, slug, user, payload.article))


@router.delete(
    "/{slug}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={**NOT_FOUND, **FORBIDDEN},
)
async def delete_article(
    slug: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await article_service.delete_article(db, slug, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{slug}/favorite", response_model=ArticleResponse, responses=NOT_FOUND)
async def favorite_article(
    slug: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleResponse:
    return ArticleResponse(article=await article_service.favorite(db, slug, user))


@router.delete("/{slug}/favorite", response_model=ArticleResponse, responses=NOT_FOUND)
async def unfavorite_article(
    slug: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ArticleResponse:
    return ArticleResponse(article=await article_service.unfavorite(db, slug, user))
