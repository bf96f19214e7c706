"""
Tag service — the list of every tag name, served cache-aside.

The list is cached in Redis under ``tags:all`` for ``CACHE_TTL_TAGS``
seconds and dropped whenever an article is created.  When Redis is down
every call reads the database.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.cache import TAGS_KEY, cache
from conduit.config import settings
from conduit.repositories import TagRepository
from conduit.services.translation import repository_errors


async def get_tags(db: AsyncSession) -> list[str]:
    cached = await cache.get(TAGS_KEY)
    if cached is not None:
        return cached

    with repository_errors():
        names = await TagRepository(db).list_names()
    await cache.set(TAGS_KEY, names, ttl=settings.CACHE_TTL_TAGS)
    return names
