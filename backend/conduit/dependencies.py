"""
Conduit Backend: Request Dependencies
======================================

What:  FastAPI dependencies that resolve per-request collaborators: the
       application's Settings, TokenService and PasswordHasher (from
       app.state), and the requesting user (from the Authorization header).
Who:   Declared in route signatures via `Depends(...)`.

Authorization Header:
    Authorization: Token <jwt>      (Conduit clients)
    Authorization: Bearer <jwt>     (also accepted)

    get_optional_user   no header → None; bad or expired token → 401
    get_current_user    no header → 401

    The resolved user is loaded through the request's own session, so
    services can modify it within the request's transaction.
"""

import logging
from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.config import Settings
from conduit.database import get_db_session
from conduit.exceptions import AuthenticationError
from conduit.models import User
from conduit.services.security import PasswordHasher, TokenService
from conduit.services.user_service import user_service

logger = logging.getLogger(__name__)

TOKEN_SCHEMES = ("token", "bearer")

authorization_header = APIKeyHeader(
    name="Authorization",
    auto_error=False,
    description="`Token <jwt>` as returned by login or registration",
)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def extract_token(authorization: Optional[str]) -> Optional[str]:
    """
    Token from an Authorization header value.

    Returns None when the header is absent or empty.

    Raises:
        AuthenticationError: Header present but not "<Token|Bearer> <jwt>"
    """
    if authorization is None or not authorization.strip():
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() not in TOKEN_SCHEMES:
        raise AuthenticationError("has an unsupported format")
    return parts[1]


async def get_optional_user(
    request: Request,
    authorization: Optional[str] = Security(authorization_header),
    db: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> Optional[User]:
    token = extract_token(authorization)
    if token is None:
        return None

    claims = tokens.decode(token)
    user = await user_service.get_by_id(db, claims.user_id)
    if user is None:
        logger.info("Token for unknown user id %s rejected", claims.user_id)
        raise AuthenticationError()

    request.state.token = token
    return user


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise AuthenticationError()
    return user
