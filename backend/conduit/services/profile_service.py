"""
Conduit Backend: Profile Service
=================================

What:  Public profiles and the follow relation between users.
Who:   Called by /api/profiles routes; `build_profile` and `following_ids`
       are also used by the article and comment services to render authors.

Follow semantics:
    follow / unfollow are idempotent: following twice keeps one row,
    unfollowing someone you do not follow is a no-op. Following yourself
    is rejected.
"""

import logging
from typing import Iterable, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import insert_ignoring_conflicts
from conduit.exceptions import ValidationError
from conduit.models import Follow, User
from conduit.schemas.user import ProfileOut
from conduit.services.user_service import user_service

logger = logging.getLogger(__name__)


def build_profile(user: User, following: bool = False) -> ProfileOut:
    return ProfileOut(
        username=user.username,
        bio=user.bio,
        image=user.image,
        following=following,
    )


class ProfileService:

    async def is_following(self, db: AsyncSession, follower_id: Optional[int], followee_id: int) -> bool:
        if not follower_id:
            return False
        result = await db.execute(
            select(Follow.follower_id).where(
                Follow.follower_id == follower_id,
                Follow.followee_id == followee_id,
            )
        )
        return result.first() is not None

    async def following_ids(
        self,
        db: AsyncSession,
        follower_id: Optional[int],
        candidate_ids: Iterable[int],
    ) -> Set[int]:
        """Subset of `candidate_ids` that `follower_id` follows."""
        candidates = set(candidate_ids)
        if not follower_id or not candidates:
            return set()
        result = await db.execute(
            select(Follow.followee_id).where(
                Follow.follower_id == follower_id,
                Follow.followee_id.in_(candidates),
            )
        )
        return set(result.scalars().all())

    async def get_profile(self, db: AsyncSession, username: str, viewer: Optional[User]) -> ProfileOut:
        """
        Raises:
            NotFoundError: Unknown username (→ 404)
        """
        user = await user_service.get_by_username(db, username)
        following = await self.is_following(db, viewer.id if viewer else None, user.id)
        return build_profile(user, following)

    async def follow(self, db: AsyncSession, follower: User, username: str) -> ProfileOut:
        """
        Raises:
            NotFoundError:   Unknown username (→ 404)
            ValidationError: `follower` tried to follow themselves (→ 422)
        """
        followee = await user_service.get_by_username(db, username)
        if followee.id == follower.id:
            raise ValidationError("cannot follow yourself", field="profile")

        result = await db.execute(
            insert_ignoring_conflicts(db, Follow).values(
                follower_id=follower.id,
                followee_id=followee.id,
            )
        )
        if result.rowcount:
            logger.info("User %s now follows %s", follower.id, followee.id)
        return build_profile(followee, True)

    async def unfollow(self, db: AsyncSession, follower: User, username: str) -> ProfileOut:
        followee = await user_service.get_by_username(db, username)
        await db.execute(
            delete(Follow).where(
                Follow.follower_id == follower.id,
                Follow.followee_id == followee.id,
            )
        )
        return build_profile(followee, False)


profile_service = ProfileService()
