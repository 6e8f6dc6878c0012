"""
Conduit Backend: User and Profile Schemas
==========================================

What:  Request and response bodies for /api/users, /api/user and
       /api/profiles.
How:   Request fields are all optional at the schema level; UserService
       reports missing or blank values as `{"<field>": ["can't be blank"]}`
       so every input problem shares the same error shape.
"""

from typing import Optional

from pydantic import BaseModel, Field

from conduit.schemas.common import CamelModel


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class RegisterUser(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class RegisterUserRequest(BaseModel):
    """POST /api/users body: {"user": {"username", "email", "password"}}"""

    user: RegisterUser


class LoginUser(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginUserRequest(BaseModel):
    user: LoginUser


class UpdateUser(CamelModel):
    """Every field optional; only the supplied ones change."""

    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None


class UpdateUserRequest(BaseModel):
    user: UpdateUser


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class UserOut(CamelModel):
    """The authenticated user, including their token."""

    email: str
    token: str
    username: str
    bio: Optional[str] = None
    image: Optional[str] = None


class UserResponse(BaseModel):
    user: UserOut


class ProfileOut(CamelModel):
    """
    What:  Public view of a user as seen by the requesting user.

    following: whether the requesting user follows this profile (always
               false for anonymous requests).
    """

    username: str
    bio: Optional[str] = None
    image: Optional[str] = None
    following: bool = Field(default=False)


class ProfileResponse(BaseModel):
    profile: ProfileOut
