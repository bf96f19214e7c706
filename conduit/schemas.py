import re
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from conduit.slugs import RESERVED_SLUGS, slugify

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")

# bcrypt only looks at the first 72 bytes of a password.
_MAX_PASSWORD_BYTES = 72


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys (``tagList``, ``favoritesCount``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_email(value: str | None) -> str | None:
    if value is not None and not _EMAIL_RE.match(value):
        raise ValueError("email is not a valid email")
    return value


def _check_password(value: str | None) -> str | None:
    if value is None:
        return value
    if len(value) < 8:
        raise ValueError("password must be at least 8 characters long")
    if len(value.encode()) > _MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {_MAX_PASSWORD_BYTES} bytes long")
    return value


# --- User ---

class NewUser(CamelModel):
    username: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=1, max_length=255)
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str | None) -> str | None:
        return _check_password(value)


class NewUserRequest(BaseModel):
    user: NewUser


class LoginUser(CamelModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)


class LoginUserRequest(BaseModel):
    user: LoginUser


class UpdateUser(CamelModel):
    """
    Partial update of the current user.  Keys left out of the request are
    not touched; an explicit ``null`` is treated the same as a missing key.
    """

    email: str | None = Field(None, min_length=1, max_length=255)
    username: str | None = Field(None, min_length=1, max_length=255)
    password: str | None = None
    bio: str | None = None
    image: str | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str | None) -> str | None:
        return _check_password(value)

    def changes(self) -> dict:
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class UpdateUserRequest(BaseModel):
    user: UpdateUser


class User(CamelModel):
    email: str
    token: str | None = None
    username: str
    bio: str
    image: str


class UserResponse(BaseModel):
    user: User


# --- Profile ---

class Profile(CamelModel):
    username: str
    bio: str
    image: str
    following: bool


class ProfileResponse(BaseModel):
    profile: Profile


# --- Article ---

class NewArticle(CamelModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = Field(min_length=1)
    body: str = Field(min_length=1)
    tag_list: list[Annotated[str, Field(min_length=1, max_length=255)]] = []

    @field_validator("title")
    @classmethod
    def title_has_slug(cls, value: str) -> str:
        slug = slugify(value)
        if not slug:
            raise ValueError("title must contain at least one letter or digit")
        if slug in RESERVED_SLUGS:
            raise ValueError(f"title cannot produce the reserved slug '{slug}'")
        return value


class NewArticleRequest(BaseModel):
    article: NewArticle


class UpdateArticle(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = None
    body: str | None = None

    def changes(self) -> dict:
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class UpdateArticleRequest(BaseModel):
    article: UpdateArticle


class Article(CamelModel):
    slug: str
    title: str
    description: str
    body: str
    tag_list: list[str]
    created_at: datetime
    updated_at: datetime
    favorited: bool
    favorites_count: int
    author: Profile


class SingleArticleResponse(BaseModel):
    article: Article


class MultipleArticlesResponse(CamelModel):
    articles: list[Article]
    articles_count: int


# --- Comment ---

class NewComment(CamelModel):
    body: str = Field(min_length=1)


class NewCommentRequest(BaseModel):
    comment: NewComment


class Comment(CamelModel):
    id: int
    created_at: datetime
    updated_at: datetime
    body: str
    author: Profile


class SingleCommentResponse(BaseModel):
    comment: Comment


class MultipleCommentsResponse(BaseModel):
    comments: list[Comment]


# --- Tag ---

class TagsResponse(BaseModel):
    tags: list[str]


# --- Errors ---

class ErrorBody(BaseModel):
    body: list[str]


class GenericErrorModel(BaseModel):
    errors: ErrorBody


# --- Health ---

class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    service: str
    version: str
    cache_info: dict = {}
