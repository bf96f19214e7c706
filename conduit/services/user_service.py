"""
User service — registration, login and the current user's account.

bcrypt is CPU-bound, so hashing and verification run in a worker thread via
``asyncio.to_thread``.  Neither ever runs inside a database transaction:
each repository call commits before the next step starts.
"""
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from conduit.errors import InvalidCredentials
from conduit.repositories import UserRepository
from conduit.repositories import errors as repo_errors
from conduit.repositories.records import UserRecord
from conduit.schemas import User
from conduit.security import create_access_token, hash_password, verify_password
from conduit.services.translation import repository_errors, translate

logger = logging.getLogger(__name__)


def _user_view(record: UserRecord, token: str | None = None) -> User:
    return User(
        email=record.email,
        token=token,
        username=record.username,
        bio=record.bio,
        image=record.image,
    )


async def register(db: AsyncSession, username: str, email: str, password: str) -> User:
    """
    Create an account and return it with a freshly issued token.

    Raises ``UsernameTaken`` or ``EmailTaken`` when either is in use.
    """
    password_hash = await asyncio.to_thread(hash_password, password)
    with repository_errors():
        record = await UserRepository(db).create(username, email, password_hash)
    logger.info("Registered user id=%d username=%r", record.id, record.username)
    return _user_view(record, token=create_access_token(record.id))


async def login(db: AsyncSession, email: str, password: str) -> User:
    """
    Check *email* / *password* and return the user with a new token.

    An unknown email and a wrong password are indistinguishable to the
    caller: both raise ``InvalidCredentials``.
    """
    try:
        record = await UserRepository(db).get_by_email(email)
    except repo_errors.UserNotFound as exc:
        await asyncio.to_thread(verify_password, password, None)
        raise InvalidCredentials() from exc
    except repo_errors.RepositoryError as exc:
        raise translate(exc) from exc

    if not await asyncio.to_thread(verify_password, password, record.password_hash):
        logger.info("Failed login for user id=%d", record.id)
        raise InvalidCredentials()
    return _user_view(record, token=create_access_token(record.id))


async def get_current(db: AsyncSession, user_id: int) -> User:
    """Return the account for *user_id* without issuing a token."""
    with repository_errors():
        record = await UserRepository(db).get_by_id(user_id)
    return _user_view(record)


async def update(db: AsyncSession, user_id: int, changes: dict) -> User:
    """
    Apply a partial update.  *changes* holds only the fields the client
    sent; a ``password`` entry is re-hashed before it is stored.
    """
    changes = dict(changes)
    if "password" in changes:
        changes["password_hash"] = await asyncio.to_thread(hash_password, changes.pop("password"))

    repo = UserRepository(db)
    with repository_errors():
        if changes:
            record = await repo.update(user_id, changes)
        else:
            record = await repo.get_by_id(user_id)
    return _user_view(record)
