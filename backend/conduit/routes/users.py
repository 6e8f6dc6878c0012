"""
Conduit Backend: User Route Handlers
=====================================

What:  Registration, login and the current-user resource.

Routes:
    POST /api/users         register            → 201 {"user": {...}}
    POST /api/users/login   log in              → 200 {"user": {...}}
    GET  /api/user          current user (auth) → 200 {"user": {...}}
    PUT  /api/user          update (auth)       → 200 {"user": {...}}

Every user response carries a token: a fresh one after register/login,
the presented one for GET, and a fresh one after PUT (the username claim
may have changed).
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db_session
from conduit.dependencies import get_current_user, get_password_hasher, get_token_service
from conduit.models import User
from conduit.schemas.common import ErrorResponse
from conduit.schemas.user import (
    LoginUserRequest,
    RegisterUserRequest,
    UpdateUserRequest,
    UserResponse,
)
from conduit.services.security import PasswordHasher, TokenService
from conduit.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Users"])

ERROR_RESPONSES = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    422: {"description": "Invalid input", "model": ErrorResponse},
}


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: ERROR_RESPONSES[422]},
    summary="Register a new user",
)
async def register(
    payload: RegisterUserRequest,
    db: AsyncSession = Depends(get_db_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
) -> UserResponse:
    user = await user_service.register(db, payload.user, hasher)
    return UserResponse(user=user_service.to_user_out(user, tokens.issue(user)))


@router.post(
    "/users/login",
    response_model=UserResponse,
    responses={422: ERROR_RESPONSES[422]},
    summary="Log in with e-mail and password",
)
async def login(
    payload: LoginUserRequest,
    db: AsyncSession = Depends(get_db_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
) -> UserResponse:
    user = await user_service.authenticate(db, payload.user.email, payload.user.password, hasher)
    return UserResponse(user=user_service.to_user_out(user, tokens.issue(user)))


@router.get(
    "/user",
    response_model=UserResponse,
    responses={401: ERROR_RESPONSES[401]},
    summary="Get the current user",
)
async def current_user(
    request: Request,
    user: User = Depends(get_current_user),
) -> UserResponse:
    return UserResponse(user=user_service.to_user_out(user, request.state.token))


@router.put(
    "/user",
    response_model=UserResponse,
    responses=ERROR_RESPONSES,
    summary="Update the current user",
)
async def update_user(
    payload: UpdateUserRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
) -> UserResponse:
    user = await user_service.update(db, user, payload.user, hasher)
    return UserResponse(user=user_service.to_user_out(user, tokens.issue(user)))
