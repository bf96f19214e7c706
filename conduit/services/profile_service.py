"""
Profile service — public user profiles and the follow graph.

Follow and unfollow are idempotent.  Following yourself is rejected by the
``prevent_self_follow`` CHECK constraint rather than by a pre-check here, so
the rule holds for every writer of the ``follows`` table.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from conduit.repositories import ProfileRepository
from conduit.repositories.records import ProfileRecord
from conduit.schemas import Profile
from conduit.services.translation import repository_errors

logger = logging.getLogger(__name__)


def profile_view(record: ProfileRecord) -> Profile:
    return Profile(
        username=record.username,
        bio=record.bio,
        image=record.image,
        following=record.following,
    )


async def get_profile(db: AsyncSession, username: str, viewer_id: int | None = None) -> Profile:
    """Return *username*'s profile; ``following`` is relative to *viewer_id*."""
    with repository_errors():
        record = await ProfileRepository(db).get(username, viewer_id)
    return profile_view(record)


async def follow(db: AsyncSession, follower_id: int, username: str) -> Profile:
    repo = ProfileRepository(db)
    with repository_errors():
        target = await repo.get(username)
        await repo.follow(follower_id, target.id)
        record = await repo.get(username, follower_id)
    logger.info("User id=%d follows user id=%d", follower_id, target.id)
    return profile_view(record)


async def unfollow(db: AsyncSession, follower_id: int, username: str) -> Profile:
    repo = ProfileRepository(db)
    with repository_errors():
        target = await repo.get(username)
        await repo.unfollow(follower_id, target.id)
        record = await repo.get(username, follower_id)
    return profile_view(record)
