"""
Conduit Backend: Comment Route Handlers
========================================

Routes:
    GET    /api/articles/{slug}/comments        optional auth
    POST   /api/articles/{slug}/comments        auth → 201
    DELETE /api/articles/{slug}/comments/{id}   comment author only → 204
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db_session
from conduit.dependencies import get_current_user, get_optional_user
from conduit.models import User
from conduit.schemas.article import CommentListResponse, CommentResponse, NewCommentRequest
from conduit.schemas.common import ErrorResponse
from conduit.services.comment_service import comment_service

router = APIRouter(prefix="/api/articles/{slug}/comments", tags=["Comments"])

NOT_FOUND = {404: {"description": "Unknown article or comment", "model": ErrorResponse}}


@router.get("", response_model=CommentListResponse, responses=NOT_FOUND)
async def list_comments(
    slug: str,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentListResponse:
    return CommentListResponse(comments=await comment_service.list_comments(db, slug, viewer))


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
)
async def add_comment(
    slug: str,
    payload: NewCommentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    return CommentResponse(comment=await comment_service.add_comment(db, slug, user, payload.comment))


@router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={**NOT_FOUND, 403: {"description": "Not the comment's author", "model": ErrorResponse}},
)
async def delete_comment(
    slug: str,
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await comment_service.delete_comment(db, slug, comment_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
