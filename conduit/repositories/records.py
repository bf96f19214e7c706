"""
Plain value records returned by the repositories.

Records are frozen dataclasses, never ORM instances: relations are resolved
per query (an article carries its author's profile and tag names, not a live
``User`` object), so nothing above the persistence layer can trigger lazy
loads or build a cyclic object graph.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored instant is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class UserRecord:
    id: int
    username: str
    email: str
    password_hash: str
    bio: str
    image: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ProfileRecord:
    id: int
    username: str
    bio: str
    image: str
    following: bool = False


@dataclass(frozen=True)
class ArticleRecord:
    id: int
    slug: str
    title: str
    description: str
    body: str
    author_id: int
    created_at: datetime
    updated_at: datetime
    author: ProfileRecord
    tag_list: list[str] = field(default_factory=list)
    favorited: bool = False
    favorites_count: int = 0


@dataclass(frozen=True)
class CommentRecord:
    id: int
    body: str
    article_id: int
    author_id: int
    created_at: datetime
    updated_at: datetime
    author: ProfileRecord


@dataclass(frozen=True)
class ArticlePage:
    """One page of a listing plus the total number of matches."""

    articles: list[ArticleRecord]
    total: int
