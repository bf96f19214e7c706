"""
Shared transaction handling and constraint translation for repositories.

Every public repository method runs its statements inside
``Repository.transaction()``, which gives the method three guarantees:

- Atomicity: a transaction is opened at method entry and committed when the
  block exits cleanly.  Any exception (including ``CancelledError``) rolls it
  back.  When the caller already holds an open transaction the block joins
  it and the caller owns commit/rollback.
- Deadline: statements run under ``asyncio.timeout_at`` with the deadline
  found in ``request_deadline_var``.  Expiry cancels the in-flight query,
  rolls back and surfaces as ``Cancelled``.
- Closed error taxonomy: ``IntegrityError`` is translated by constraint name
  into the classes of ``conduit.repositories.errors``; every other
  ``SQLAlchemyError`` is logged and raised as ``Internal``.
"""
import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.middleware import request_deadline_var
from conduit.models import User
from conduit.repositories.errors import (
    ArticleNotFound,
    Cancelled,
    CannotFollowSelf,
    DuplicateEmail,
    DuplicateSlug,
    DuplicateUsername,
    Internal,
    RepositoryError,
    UserNotFound,
)

logger = logging.getLogger(__name__)

# Constraint names are pinned by the models and the initial migration.
_CONSTRAINT_ERRORS: dict[str, type[RepositoryError]] = {
    "uq_users_username": DuplicateUsername,
    "uq_users_email": DuplicateEmail,
    "uq_articles_slug": DuplicateSlug,
    "prevent_self_follow": CannotFollowSelf,
    "fk_articles_author_id_users": UserNotFound,
    "fk_comments_author_id_users": UserNotFound,
    "fk_favorites_user_id_users": UserNotFound,
    "fk_follows_follower_id_users": UserNotFound,
    "fk_follows_following_id_users": UserNotFound,
    "fk_comments_article_id_articles": ArticleNotFound,
    "fk_favorites_article_id_articles": ArticleNotFound,
    "fk_article_tags_article_id_articles": ArticleNotFound,
}

# SQLite names the offending column instead of the constraint.
_SQLITE_UNIQUE_COLUMNS: dict[str, type[RepositoryError]] = {
    "users.username": DuplicateUsername,
    "users.email": DuplicateEmail,
    "articles.slug": DuplicateSlug,
}


def constraint_name(exc: IntegrityError) -> str | None:
    """
    Return the violated constraint's name as reported by the driver, or
    None when the driver does not expose it.

    psycopg attaches diagnostics to the DBAPI error itself; asyncpg errors
    are wrapped by SQLAlchemy's DBAPI adapter and hang off ``__cause__``.
    """
    orig = exc.orig
    name = getattr(getattr(orig, "diag", None), "constraint_name", None)
    if name:
        return name
    return getattr(getattr(orig, "__cause__", None), "constraint_name", None) or None


def translate_integrity_error(
    exc: IntegrityError,
    on_foreign_key: type[RepositoryError] | None = None,
) -> RepositoryError:
    """
    Map a storage-level constraint violation onto the repository taxonomy.

    *on_foreign_key* is used for a foreign-key failure whose constraint the
    driver does not name (SQLite only reports "FOREIGN KEY constraint
    failed"); without it such a failure is ``Internal``.
    """
    name = constraint_name(exc)
    if name in _CONSTRAINT_ERRORS:
        return _CONSTRAINT_ERRORS[name]()

    message = str(exc.orig)
    for key, error in _CONSTRAINT_ERRORS.items():
        if key in message:
            return error()
    for column, error in _SQLITE_UNIQUE_COLUMNS.items():
        if f"UNIQUE constraint failed: {column}" in message:
            return error()
    if on_foreign_key is not None and "foreign key" in message.lower():
        return on_foreign_key()

    logger.error("Untranslated integrity error (constraint=%r): %s", name, message)
    return Internal()


class Repository:
    """Base class for repositories bound to one ``AsyncSession``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @property
    def dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    @asynccontextmanager
    async def transaction(
        self, on_foreign_key: type[RepositoryError] | None = None
    ) -> AsyncIterator[AsyncSession]:
        when = request_deadline_var.get()
        if when is not None and when <= asyncio.get_running_loop().time():
            # Already late: do not start a transaction at all.
            raise Cancelled()
        try:
            async with asyncio.timeout_at(when):
                if self.session.in_transaction():
                    yield self.session
                else:
                    async with self.session.begin():
                        yield self.session
        except IntegrityError as exc:
            raise translate_integrity_error(exc, on_foreign_key) from exc
        except TimeoutError as exc:
            logger.warning("%s: deadline exceeded, transaction rolled back", type(self).__name__)
            raise Cancelled() from exc
        except SQLAlchemyError as exc:
            logger.exception("%s: storage error", type(self).__name__)
            raise Internal() from exc

    async def require_user(self, user_id: int) -> None:
        """
        Raise ``UserNotFound`` unless *user_id* exists.  Only SQLite needs
        this: it reports a foreign-key failure without naming the
        constraint, so a missing user would otherwise be mistaken for a
        missing article.
        """
        if self.dialect_name != "sqlite":
            return
        found = await self.session.scalar(select(User.id).where(User.id == user_id))
        if found is None:
            raise UserNotFound()

    def insert_ignoring_conflicts(self, table):
        """
        Return an ``INSERT ... ON CONFLICT DO NOTHING`` for *table* in the
        session's dialect.  Only unique/primary-key conflicts are ignored;
        CHECK and FOREIGN KEY violations still raise.
        """
        if self.dialect_name == "postgresql":
            return postgresql.insert(table).on_conflict_do_nothing()
        if self.dialect_name == "sqlite":
            return sqlite.insert(table).on_conflict_do_nothing()
        raise NotImplementedError(f"unsupported dialect: {self.dialect_name}")
