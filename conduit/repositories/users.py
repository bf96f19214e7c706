from sqlalchemy import select, update

from conduit.models import User, utcnow
from conduit.repositories.base import Repository
from conduit.repositories.errors import UserNotFound
from conduit.repositories.records import UserRecord, as_utc

# Columns a caller may change through ``UserRepository.update``.
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {"username", "email", "password_hash", "bio", "image"}
)

_USER_COLUMNS = (
    User.id,
    User.username,
    User.email,
    User.password_hash,
    User.bio,
    User.image,
    User.created_at,
    User.updated_at,
)


def _to_record(row) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        email=row.email,
        password_hash=row.password_hash,
        bio=row.bio or "",
        image=row.image or "",
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


class UserRepository(Repository):
    async def create(self, username: str, email: str, password_hash: str) -> UserRecord:
        """
        Insert a user with an empty bio and image.

        Raises ``DuplicateUsername`` / ``DuplicateEmail`` on the matching
        unique constraint.
        """
        async with self.transaction():
            user = User(
                username=username,
                email=email,
                password_hash=password_hash,
                bio="",
                image="",
            )
            self.session.add(user)
            await self.session.flush()
            return _to_record(user)

    async def get_by_id(self, user_id: int) -> UserRecord:
        return await self._get_one(User.id == user_id)

    async def get_by_email(self, email: str) -> UserRecord:
        return await self._get_one(User.email == email)

    async def get_by_username(self, username: str) -> UserRecord:
        return await self._get_one(User.username == username)

    async def update(self, user_id: int, changes: dict) -> UserRecord:
        """
        Apply *changes* (a subset of username/email/password_hash/bio/image)
        and refresh ``updated_at``.  Fields absent from *changes* are left
        untouched.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot update user field(s): {', '.join(sorted(unknown))}")

        async with self.transaction():
            result = await self.session.execute(
                update(User)
                .where(User.id == user_id)
                .values(**changes, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise UserNotFound()
            return await self._fetch(User.id == user_id)

    async def _get_one(self, condition) -> UserRecord:
        async with self.transaction():
            return await self._fetch(condition)

    async def _fetch(self, condition) -> UserRecord:
        row = (await self.session.execute(select(*_USER_COLUMNS).where(condition))).one_or_none()
        if row is None:
            raise UserNotFound()
        return _to_record(row)
