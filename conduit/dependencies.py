from dataclasses import dataclass

from fastapi import Header, Query

from conduit.config import settings
from conduit.errors import TokenInvalid
from conduit.security import decode_access_token

_SCHEME = "Token"


class PaginationParams:
    """
    Reusable FastAPI dependency that parses ``limit`` / ``offset`` query
    parameters for the article listings.

    Usage in a router::

        @router.get("/api/articles")
        async def list_articles(pagination: PaginationParams = Depends(PaginationParams)):
            ...
    """

    def __init__(
        self,
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=settings.MAX_PAGE_SIZE,
            description=f"Number of articles to return (max {settings.MAX_PAGE_SIZE}).",
        ),
        offset: int = Query(
            0,
            ge=0,
            description="Number of articles to skip.",
        ),
    ) -> None:
        self.limit = limit
        self.offset = offset


@dataclass(frozen=True)
class Credentials:
    """The authenticated caller: user id plus the raw token they presented."""

    user_id: int
    token: str


def _parse_authorization(authorization: str | None) -> Credentials | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme != _SCHEME or not token:
        raise TokenInvalid("authorization header must be 'Token <jwt>'")
    return Credentials(user_id=decode_access_token(token), token=token)


async def get_credentials(authorization: str | None = Header(None)) -> Credentials:
    """Dependency for endpoints that require a logged-in user."""
    credentials = _parse_authorization(authorization)
    if credentials is None:
        raise TokenInvalid("missing authorization token")
    return credentials


async def get_optional_credentials(authorization: str | None = Header(None)) -> Credentials | None:
    """
    Dependency for endpoints where authentication only changes the view
    (``following``, ``favorited``).  A malformed or expired token is still
    rejected rather than silently downgraded to anonymous.
    """
    return _parse_authorization(authorization)


def viewer_id(credentials: Credentials | None) -> int | None:
    return credentials.user_id if credentials else None
