"""
Conduit Backend: User Service
==============================

What:  Registration, login, lookup and profile updates for users.
How:   Stateless; every call receives the request's session plus the
       PasswordHasher built by `create_app()`. Validation errors for all
       fields are collected and raised together as one ValidationError.
Who:   Called by the /api/users and /api/user route handlers and by the
       authentication dependency (token subject → User).

Validation Rules:
    email     required on register; must look like an address; stored
              lower-cased; unique
    username  required on register; unique
    password  required on register; at least 8 characters
    image     defaults to the Gravatar URL of the e-mail address
"""

import hashlib
import logging
import re
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.exceptions import DatabaseError, NotFoundError, ValidationError
from conduit.models import User
from conduit.schemas.user import RegisterUser, UpdateUser, UserOut
from conduit.services.security import PasswordHasher

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

# One "@", no whitespace, a dot in the domain part
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

BLANK = "can't be blank"
TAKEN = "has already been taken"
INVALID = "is invalid"
TOO_SHORT = f"is too short (minimum is {MIN_PASSWORD_LENGTH} characters)"


def gravatar_url(email: str) -> str:
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return f"https://www.gravatar.com/avatar/{digest}"


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class UserService:
    """
    Business logic for user accounts.

    Responsibilities:
        - register(): validate, check uniqueness, hash, insert
        - authenticate(): e-mail + password → User
        - update(): partial update of the current user
        - get_by_id() / get_by_username(): lookups
    """

    async def get_by_id(self, db: AsyncSession, user_id: int) -> Optional[User]:
        return await db.get(User, user_id)

    async def get_by_username(self, db: AsyncSession, username: str) -> User:
        """
        Raises:
            NotFoundError: No user has this username (→ 404)
        """
        result = await db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="profile", resource_id=username)
        return user

    async def _check_unique(
        self,
        db: AsyncSession,
        errors: Dict[str, List[str]],
        email: Optional[str] = None,
        username: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ) -> None:
        if email is not None:
            query = select(User.id).where(User.email == email)
            if exclude_id is not None:
                query = query.where(User.id != exclude_id)
            if (await db.execute(query)).first() is not None:
                errors["email"] = [TAKEN]
        if username is not None:
            query = select(User.id).where(User.username == username)
            if exclude_id is not None:
                query = query.where(User.id != exclude_id)
            if (await db.execute(query)).first() is not None:
                errors["username"] = [TAKEN]

    async def register(
        self,
        db: AsyncSession,
        data: RegisterUser,
        hasher: PasswordHasher,
    ) -> User:
        """
        Create a new account.

        Raises:
            ValidationError: Blank/invalid fields or a taken email/username,
                             reported per field (→ 422)
            DatabaseError:   Insert failed for another reason (→ 500)
        """
        errors: Dict[str, List[str]] = {}

        if _is_blank(data.email):
            errors["email"] = [BLANK]
        elif not EMAIL_PATTERN.match(data.email.strip()):
            errors["email"] = [INVALID]

        if _is_blank(data.username):
            errors["username"] = [BLANK]

        if _is_blank(data.password):
            errors["password"] = [BLANK]
        elif len(data.password) < MIN_PASSWORD_LENGTH:
            errors["password"] = [TOO_SHORT]

        if errors:
            raise ValidationError(field_errors=errors)

        email = data.email.strip().lower()
        username = data.username.strip()

        await self._check_unique(db, errors, email=email, username=username)
        if errors:
            raise ValidationError(field_errors=errors)

        user = User(
            username=username,
            email=email,
            password_hash=hasher.hash(data.password),
            image=gravatar_url(email),
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent registration
            raise ValidationError(TAKEN, field="username") from e
        except SQLAlchemyError as e:
            logger.error("Database error registering user: %s", e, exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__}) from e

        logger.info("User registered: id=%s username=%s", user.id, user.username)
        return user

    async def authenticate(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
        hasher: PasswordHasher,
    ) -> User:
        """
        Raises:
            ValidationError: Unknown e-mail or wrong password. The two cases
                             are indistinguishable to the client.
        """
        invalid = ValidationError(INVALID, field="email or password")
        if _is_blank(email) or _is_blank(password):
            raise invalid

        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        user = result.scalar_one_or_none()
        if user is None or not hasher.verify(user.password_hash, password):
            logger.info("Failed login attempt")
            raise invalid
        return user

    async def update(
        self,
        db: AsyncSession,
        user: User,
        data: UpdateUser,
        hasher: PasswordHasher,
    ) -> User:
        """
        Apply the supplied fields to `user`.

        Raises:
            ValidationError: Nothing to change, invalid values, or a taken
                             email/username (→ 422)
        """
        changes = data.model_dump(exclude_unset=True)
        if not any(value is not None for value in changes.values()):
            raise ValidationError("no changes supplied", field="user")

        errors: Dict[str, List[str]] = {}
        email = None
        username = None

        if data.email is not None:
            if _is_blank(data.email):
                errors["email"] = [BLANK]
            elif not EMAIL_PATTERN.match(data.email.strip()):
                errors["email"] = [INVALID]
            else:
                email = data.email.strip().lower()

        if data.username is not None:
            if _is_blank(data.username):
                errors["username"] = [BLANK]
            else:
                username = data.username.strip()

        if data.password is not None and len(data.password) < MIN_PASSWORD_LENGTH:
            errors["password"] = [TOO_SHORT]

        if errors:
            raise ValidationError(field_errors=errors)

        await self._check_unique(db, errors, email=email, username=username, exclude_id=user.id)
        if errors:
            raise ValidationError(field_errors=errors)

        if email is not None:
            user.email = email
        if username is not None:
            user.username = username
        if data.password is not None:
            user.password_hash = hasher.hash(data.password)
        if data.bio is not None:
            user.bio = data.bio
        if data.image is not None:
            user.image = data.image

        try:
            await db.flush()
        except IntegrityError as e:
            raise ValidationError(TAKEN, field="username") from e
        except SQLAlchemyError as e:
            logger.error("Database error updating user %s: %s", user.id, e, exc_info=True)
            raise DatabaseError(context={"user_id": user.id}) from e

        logger.info("User %s updated fields: %s", user.id, sorted(k for k, v in changes.items() if v is not None))
        return user

    @staticmethod
    def to_user_out(user: User, token: str) -> UserOut:
        return UserOut(
            email=user.email,
            token=token,
            username=user.username,
            bio=user.bio,
            image=user.image,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
