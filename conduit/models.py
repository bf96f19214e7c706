from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from conduit.database import Base

# 64-bit keys everywhere; SQLite only autoincrements an INTEGER PRIMARY KEY.
BigIntId = BigInteger().with_variant(Integer, "sqlite")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    __table_args__ = (
        UniqueConstraint("username", name="uq_users_username"),
        UniqueConstraint("email", name="uq_users_email"),
        CheckConstraint("username <> ''", name="ck_users_username_not_empty"),
        CheckConstraint("email <> ''", name="ck_users_email_not_empty"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


# ---------------------------------------------------------------------------
# Follow (directed edge follower -> following)
# ---------------------------------------------------------------------------
follows = Table(
    "follows",
    Base.metadata,
    Column(
        "follower_id",
        BigIntId,
        ForeignKey("users.id", ondelete="CASCADE", name="fk_follows_follower_id_users"),
        nullable=False,
    ),
    Column(
        "following_id",
        BigIntId,
        ForeignKey("users.id", ondelete="CASCADE", name="fk_follows_following_id_users"),
        nullable=False,
    ),
    PrimaryKeyConstraint("follower_id", "following_id", name="pk_follows"),
    CheckConstraint("follower_id <> following_id", name="prevent_self_follow"),
    Index("ix_follows_following_id", "following_id"),
)


# ---------------------------------------------------------------------------
# Tag
# ---------------------------------------------------------------------------
class Tag(Base):
    __tablename__ = "tags"

    __table_args__ = (UniqueConstraint("name", name="uq_tags_name"),)

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


# ---------------------------------------------------------------------------
# Article
# ---------------------------------------------------------------------------
class Article(Base):
    __tablename__ = "articles"

    __table_args__ = (
        UniqueConstraint("slug", name="uq_articles_slug"),
        # Author pages and the follow feed, newest first
        Index("ix_articles_author_id_created_at", "author_id", "created_at"),
        # Global listing order
        Index("ix_articles_created_at_id", "created_at", "id"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(350), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("users.id", ondelete="CASCADE", name="fk_articles_author_id_users"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


# ---------------------------------------------------------------------------
# Association table: Article <-> Tag, ordered by position
# ---------------------------------------------------------------------------
article_tags = Table(
    "article_tags",
    Base.metadata,
    Column(
        "article_id",
        BigIntId,
        ForeignKey("articles.id", ondelete="CASCADE", name="fk_article_tags_article_id_articles"),
        nullable=False,
    ),
    Column(
        "tag_id",
        BigIntId,
        ForeignKey("tags.id", ondelete="CASCADE", name="fk_article_tags_tag_id_tags"),
        nullable=False,
    ),
    Column("position", Integer, nullable=False, default=0),
    PrimaryKeyConstraint("article_id", "tag_id", name="pk_article_tags"),
    Index("ix_article_tags_tag_id", "tag_id"),
)


# ---------------------------------------------------------------------------
# Favorite
# ---------------------------------------------------------------------------
favorites = Table(
    "favorites",
    Base.metadata,
    Column(
        "user_id",
        BigIntId,
        ForeignKey("users.id", ondelete="CASCADE", name="fk_favorites_user_id_users"),
        nullable=False,
    ),
    Column(
        "article_id",
        BigIntId,
        ForeignKey("articles.id", ondelete="CASCADE", name="fk_favorites_article_id_articles"),
        nullable=False,
    ),
    PrimaryKeyConstraint("user_id", "article_id", name="pk_favorites"),
    Index("ix_favorites_article_id", "article_id"),
)


# ---------------------------------------------------------------------------
# Comment
# ---------------------------------------------------------------------------
class Comment(Base):
    __tablename__ = "comments"

    __table_args__ = (
        Index("ix_comments_article_id_created_at", "article_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    article_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("articles.id", ondelete="CASCADE", name="fk_comments_article_id_articles"),
        nullable=False,
    )
    author_id: Mapped[int] = mapped_column(
        BigIntId,
        ForeignKey("users.id", ondelete="CASCADE", name="fk_comments_author_id_users"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
