from sqlalchemy import delete, false, select

from conduit.models import User, follows
from conduit.repositories.base import Repository
from conduit.repositories.errors import UserNotFound
from conduit.repositories.records import ProfileRecord


def following_expression(viewer_id: int | None, target_id_column):
    """
    Boolean SQL expression: does *viewer_id* follow the user in
    *target_id_column*?  Constant false for anonymous viewers.
    """
    if viewer_id is None:
        return false()
    return (
        select(follows.c.follower_id)
        .where(
            follows.c.follower_id == viewer_id,
            follows.c.following_id == target_id_column,
        )
        .exists()
    )


def profile_from_row(row, prefix: str = "") -> ProfileRecord:
    return ProfileRecord(
        id=getattr(row, f"{prefix}id"),
        username=getattr(row, f"{prefix}username"),
        bio=getattr(row, f"{prefix}bio") or "",
        image=getattr(row, f"{prefix}image") or "",
        following=bool(getattr(row, f"{prefix}following")),
    )


class ProfileRepository(Repository):
    async def get(self, username: str, viewer_id: int | None = None) -> ProfileRecord:
        """
        Return the public profile of *username* as seen by *viewer_id*.

        Raises ``UserNotFound`` when no such user exists.
        """
        q = select(
            User.id,
            User.username,
            User.bio,
            User.image,
            following_expression(viewer_id, User.id).label("following"),
        ).where(User.username == username)

        async with self.transaction():
            row = (await self.session.execute(q)).one_or_none()
        if row is None:
            raise UserNotFound()
        return profile_from_row(row)

    async def follow(self, follower_id: int, following_id: int) -> None:
        """
        Create the edge follower -> following.  Repeating it is a no-op.

        A self-follow violates ``prevent_self_follow`` and raises
        ``CannotFollowSelf``.
        """
        stmt = self.insert_ignoring_conflicts(follows).values(
            follower_id=follower_id, following_id=following_id
        )
        async with self.transaction(on_foreign_key=UserNotFound):
            await self.session.execute(stmt)

    async def unfollow(self, follower_id: int, following_id: int) -> None:
        """Remove the edge follower -> following if it exists."""
        stmt = delete(follows).where(
            follows.c.follower_id == follower_id,
            follows.c.following_id == following_id,
        )
        async with self.transaction():
            await self.session.execute(stmt)
