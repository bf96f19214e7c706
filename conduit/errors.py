"""
Client-facing error taxonomy raised by the service layer.

The HTTP boundary (``conduit.exception_handlers``) maps each class to a
status code and renders ``{"errors": {"body": [message]}}``.  Input-shape
validation failures never appear here; they are reported by pydantic at
the boundary.
"""


class ConduitError(Exception):
    """Base class for every error a service may raise."""

    message = "internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


# --- Authentication ---

class InvalidCredentials(ConduitError):
    message = "invalid credentials"


class TokenInvalid(ConduitError):
    message = "invalid token"


class TokenExpired(ConduitError):
    message = "token has expired"


# --- Authorization ---

class NotAuthorized(ConduitError):
    message = "not authorized"


class AuthorCannotFavorite(ConduitError):
    message = "article author cannot favorite their own article"


class CannotFollowSelf(ConduitError):
    message = "cannot follow yourself"


# --- Not found ---

class UserNotFound(ConduitError):
    message = "user not found"


class ArticleNotFound(ConduitError):
    message = "article not found"


class CommentNotFound(ConduitError):
    message = "comment not found"


# --- Conflict ---

class UsernameTaken(ConduitError):
    message = "username already taken"


class EmailTaken(ConduitError):
    message = "email already registered"


class ArticleAlreadyExists(ConduitError):
    message = "article with this title already exists"


# --- Infrastructure ---

class Internal(ConduitError):
    message = "internal server error"


class Cancelled(ConduitError):
    message = "request cancelled"
