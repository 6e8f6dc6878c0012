"""
Conduit Backend: Article, Comment and Tag Schemas
==================================================

What:  Request and response bodies for /api/articles, comments and /api/tags.

Example (single article):
    {
      "article": {
        "slug": "how-to-train-your-dragon-5f2b1c",
        "title": "How to train your dragon",
        "description": "Ever wonder how?",
        "body": "You have to believe",
        "tagList": ["dragons", "training"],
        "createdAt": "2016-02-18T03:22:56.637Z",
        "updatedAt": "2016-02-18T03:48:35.824Z",
        "favorited": false,
        "favoritesCount": 0,
        "author": {"username": "jake", "bio": null, "image": "...", "following": false}
      }
    }
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from conduit.schemas.common import CamelModel, Timestamp
from conduit.schemas.user import ProfileOut


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class NewArticle(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    body: Optional[str] = None
    tag_list: Optional[List[str]] = None


class NewArticleRequest(BaseModel):
    article: NewArticle


class UpdateArticle(CamelModel):
    """Partial update; `tagList`, when present, replaces the article's tags."""

    title: Optional[str] = None
    description: Optional[str] = None
    body: Optional[str] = None
    tag_list: Optional[List[str]] = None


class UpdateArticleRequest(BaseModel):
    article: UpdateArticle


class NewComment(CamelModel):
    body: Optional[str] = None


class NewCommentRequest(BaseModel):
    comment: NewComment


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class ArticleOut(CamelModel):
    slug: str
    title: str
    description: str
    body: str
    tag_list: List[str] = Field(default_factory=list)
    created_at: Timestamp
    updated_at: Timestamp
    favorited: bool = False
    favorites_count: int = 0
    author: ProfileOut


class ArticleResponse(BaseModel):
    article: ArticleOut


class ArticleListResponse(CamelModel):
    """
    What:  One page of articles.

    articlesCount is the number of articles matching the filters across all
    pages, so clients can render page links from it.
    """

    articles: List[ArticleOut]
    articles_count: int


class CommentOut(CamelModel):
    id: int
    created_at: Timestamp
    updated_at: Timestamp
    body: str
    author: ProfileOut


class CommentResponse(BaseModel):
    comment: CommentOut


class CommentListResponse(BaseModel):
    comments: List[CommentOut]


class TagListResponse(BaseModel):
    tags: List[str]
