"""
Conduit Backend: Profile Route Handlers
========================================

Routes:
    GET    /api/profiles/{username}          optional auth
    POST   /api/profiles/{username}/follow   auth, idempotent
    DELETE /api/profiles/{username}/follow   auth, idempotent
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db_session
from conduit.dependencies import get_current_user, get_optional_user
from conduit.models import User
from conduit.schemas.common import ErrorResponse
from conduit.schemas.user import ProfileResponse
from conduit.services.profile_service import profile_service

router = APIRouter(prefix="/api/profiles", tags=["Profiles"])

NOT_FOUND = {404: {"description": "Unknown username", "model": ErrorResponse}}


@router.get("/{username}", response_model=ProfileResponse, responses=NOT_FOUND)
async def get_profile(
    username: str,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return ProfileResponse(profile=await profile_service.get_profile(db, username, viewer))


@router.post("/{username}/follow", response_model=ProfileResponse, responses=NOT_FOUND)
async def follow_user(
    username: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return ProfileResponse(profile=await profile_service.follow(db, user, username))


@router.delete("/{username}/follow", response_model=ProfileResponse, responses=NOT_FOUND)
async def unfollow_user(
    username: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return ProfileResponse(profile=await profile_service.unfollow(db, user, username))
