"""
Persistence-level error taxonomy.

Repositories never let SQLAlchemy or driver exceptions escape; every storage
failure is re-raised as one of the classes below (see
``conduit.repositories.base``).  The service layer maps these onto the
client-facing taxonomy in ``conduit.errors``.
"""


class RepositoryError(Exception):
    """Base class for all persistence-layer errors."""

    message = "repository error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class DuplicateUsername(RepositoryError):
    message = "username already exists"


class DuplicateEmail(RepositoryError):
    message = "email already exists"


class DuplicateSlug(RepositoryError):
    message = "article slug already exists"


class UserNotFound(RepositoryError):
    message = "user not found"


class ArticleNotFound(RepositoryError):
    message = "article not found"


class CommentNotFound(RepositoryError):
    message = "comment not found"


class CannotFollowSelf(RepositoryError):
    message = "cannot follow yourself"


class Internal(RepositoryError):
    message = "internal repository error"


class Cancelled(RepositoryError):
    message = "operation cancelled before completion"
