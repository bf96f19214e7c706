"""
Translation of repository errors into service errors.

Repositories speak in storage terms (``DuplicateSlug``), services in client
terms (``ArticleAlreadyExists``).  Anything without an entry in the table is
reported as ``Internal``.
"""
from collections.abc import Iterator
from contextlib import contextmanager

from conduit import errors
from conduit.repositories import errors as repo_errors

_ERROR_MAP: dict[type[repo_errors.RepositoryError], type[errors.ConduitError]] = {
    repo_errors.DuplicateUsername: errors.UsernameTaken,
    repo_errors.DuplicateEmail: errors.EmailTaken,
    repo_errors.DuplicateSlug: errors.ArticleAlreadyExists,
    repo_errors.UserNotFound: errors.UserNotFound,
    repo_errors.ArticleNotFound: errors.ArticleNotFound,
    repo_errors.CommentNotFound: errors.CommentNotFound,
    repo_errors.CannotFollowSelf: errors.CannotFollowSelf,
    repo_errors.Cancelled: errors.Cancelled,
    repo_errors.Internal: errors.Internal,
}


def translate(exc: repo_errors.RepositoryError) -> errors.ConduitError:
    return _ERROR_MAP.get(type(exc), errors.Internal)()


@contextmanager
def repository_errors() -> Iterator[None]:
    """Re-raise any ``RepositoryError`` from the block as a ``ConduitError``."""
    try:
        yield
    except repo_errors.RepositoryError as exc:
        raise translate(exc) from exc
