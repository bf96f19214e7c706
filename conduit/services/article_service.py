"""
Article service — business logic for the Article aggregate.

Design notes
------------
- Slugs are derived from the title once, at creation, and never change.
  A collision with an existing slug is reported as ``ArticleAlreadyExists``.
- Ownership is checked against the hydrated view loaded for the same
  request; update and delete by anyone but the author raise
  ``NotAuthorized`` and leave the article untouched.
- Favoriting is idempotent.  Authors may not favorite their own articles.
- Creating an article can introduce new tags, so it drops the cached tag
  list.  Nothing else here touches the cache.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from conduit.cache import cache
from conduit.errors import AuthorCannotFavorite, NotAuthorized
from conduit.repositories import ArticleRepository
from conduit.repositories.records import ArticlePage, ArticleRecord
from conduit.schemas import Article
from conduit.services.profile_service import profile_view
from conduit.services.translation import repository_errors
from conduit.slugs import slugify

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def article_view(record: ArticleRecord) -> Article:
    return Article(
        slug=record.slug,
        title=record.title,
        description=record.description,
        body=record.body,
        tag_list=list(record.tag_list),
        created_at=record.created_at,
        updated_at=record.updated_at,
        favorited=record.favorited,
        favorites_count=record.favorites_count,
        author=profile_view(record.author),
    )


def _page_view(page: ArticlePage) -> tuple[list[Article], int]:
    return [article_view(record) for record in page.articles], page.total


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_article(
    db: AsyncSession,
    user_id: int,
    title: str,
    description: str,
    body: str,
    tag_list: list[str] | None = None,
) -> Article:
    with repository_errors():
        record = await ArticleRepository(db).create(
            author_id=user_id,
            slug=slugify(title),
            title=title,
            description=description,
            body=body,
            tag_list=tag_list or [],
        )
    await cache.invalidate_tags()
    logger.info("Article created id=%d slug=%r by user id=%d", record.id, record.slug, user_id)
    return article_view(record)


async def get_article(db: AsyncSession, slug: str, viewer_id: int | None = None) -> Article:
    with repository_errors():
        record = await ArticleRepository(db).get_by_slug(slug, viewer_id)
    return article_view(record)


async def update_article(db: AsyncSession, user_id: int, slug: str, changes: dict) -> Article:
    """
    Apply a partial update of title/description/body.

    Raises ``ArticleNotFound`` for an unknown slug and ``NotAuthorized`` when
    *user_id* is not the author.
    """
    repo = ArticleRepository(db)
    with repository_errors():
        record = await repo.get_by_slug(slug, user_id)
        if record.author_id != user_id:
            raise NotAuthorized()
        if changes:
            record = await repo.update(record.id, changes, viewer_id=user_id)
    return article_view(record)


async def delete_article(db: AsyncSession, user_id: int, slug: str) -> None:
    repo = ArticleRepository(db)
    with repository_errors():
        record = await repo.get_by_slug(slug)
        if record.author_id != user_id:
            raise NotAuthorized()
        await repo.delete(record.id)
    logger.info("Article deleted id=%d slug=%r", record.id, slug)


async def favorite_article(db: AsyncSession, user_id: int, slug: str) -> Article:
    repo = ArticleRepository(db)
    with repository_errors():
        record = await repo.get_by_slug(slug)
        if record.author_id == user_id:
            raise AuthorCannotFavorite()
        await repo.add_favorite(user_id, record.id)
        record = await repo.get_by_slug(slug, user_id)
    return article_view(record)


async def unfavorite_article(db: AsyncSession, user_id: int, slug: str) -> Article:
    repo = ArticleRepository(db)
    with repository_errors():
        record = await repo.get_by_slug(slug)
        await repo.remove_favorite(user_id, record.id)
        record = await repo.get_by_slug(slug, user_id)
    return article_view(record)


async def list_articles(
    db: AsyncSession,
    viewer_id: int | None = None,
    tag: str | None = None,
    author: str | None = None,
    favorited: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Article], int]:
    """
    Return one page of articles, newest first, and the total number of
    matches.  *favorited* is the username of a user who favorited them.
    """
    with repository_errors():
        page = await ArticleRepository(db).list_articles(
            viewer_id=viewer_id,
            tag=tag,
            author=author,
            favorited_by=favorited,
            limit=limit,
            offset=offset,
        )
    return _page_view(page)


async def feed_articles(
    db: AsyncSession, user_id: int, limit: int = 20, offset: int = 0
) -> tuple[list[Article], int]:
    """Articles by authors *user_id* follows, newest first."""
    with repository_errors():
        page = await ArticleRepository(db).feed(user_id, limit=limit, offset=offset)
    return _page_view(page)
