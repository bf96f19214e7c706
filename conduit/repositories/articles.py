"""
Article repository: hydrated article views, tag linking, favorites, and
the offset/limit listings.

A hydrated view is assembled with two statements regardless of page size:

1. SELECT article columns JOIN author, with correlated scalar subqueries
   for ``favorites_count``, ``favorited`` and ``author.following``.
2. SELECT tag names for every article on the page, ordered by link
   position.
"""
from sqlalchemy import delete, false, func, select, update

from conduit.models import Article, Tag, User, article_tags, favorites, follows, utcnow
from conduit.repositories.base import Repository
from conduit.repositories.errors import ArticleNotFound, UserNotFound
from conduit.repositories.profiles import following_expression
from conduit.repositories.records import ArticlePage, ArticleRecord, ProfileRecord, as_utc

# Columns a caller may change through ``ArticleRepository.update``.
_UPDATABLE_FIELDS: frozenset[str] = frozenset({"title", "description", "body"})


# ---------------------------------------------------------------------------
# Query builders
# ---------------------------------------------------------------------------

def _favorites_count():
    return (
        select(func.count())
        .select_from(favorites)
        .where(favorites.c.article_id == Article.id)
        .scalar_subquery()
    )


def _favorited(viewer_id: int | None):
    if viewer_id is None:
        return false()
    return (
        select(favorites.c.user_id)
        .where(
            favorites.c.article_id == Article.id,
            favorites.c.user_id == viewer_id,
        )
        .exists()
    )


def _view_query(viewer_id: int | None):
    return (
        select(
            Article.id,
            Article.slug,
            Article.title,
            Article.description,
            Article.body,
            Article.author_id,
            Article.created_at,
            Article.updated_at,
            User.username.label("author_username"),
            User.bio.label("author_bio"),
            User.image.label("author_image"),
            _favorites_count().label("favorites_count"),
            _favorited(viewer_id).label("favorited"),
            following_expression(viewer_id, Article.author_id).label("author_following"),
        )
        .join(User, User.id == Article.author_id)
    )


def _to_record(row, tag_list: list[str]) -> ArticleRecord:
    return ArticleRecord(
        id=row.id,
        slug=row.slug,
        title=row.title,
        description=row.description,
        body=row.body,
        author_id=row.author_id,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
        author=ProfileRecord(
            id=row.author_id,
            username=row.author_username,
            bio=row.author_bio or "",
            image=row.author_image or "",
            following=bool(row.author_following),
        ),
        tag_list=tag_list,
        favorited=bool(row.favorited),
        favorites_count=row.favorites_count or 0,
    )


def _unique_in_order(names: list[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            ordered.append(name)
    return ordered


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class ArticleRepository(Repository):
    async def create(
        self,
        author_id: int,
        slug: str,
        title: str,
        description: str,
        body: str,
        tag_list: list[str],
    ) -> ArticleRecord:
        """
        Insert an article and link its tags in one transaction.

        Tags are upserted by name; links keep the order of *tag_list*, with
        repeated names collapsed to their first occurrence.  Raises
        ``DuplicateSlug`` on a slug collision and ``UserNotFound`` when
        *author_id* does not exist.
        """
        async with self.transaction(on_foreign_key=UserNotFound):
            article = Article(
                slug=slug,
                title=title,
                description=description,
                body=body,
                author_id=author_id,
            )
            self.session.add(article)
            await self.session.flush()

            for position, name in enumerate(_unique_in_order(tag_list)):
                tag_id = await self._upsert_tag(name)
                await self.session.execute(
                    self.insert_ignoring_conflicts(article_tags).values(
                        article_id=article.id, tag_id=tag_id, position=position
                    )
                )

            return await self._fetch_one(Article.id == article.id, viewer_id=None)

    async def get_by_slug(self, slug: str, viewer_id: int | None = None) -> ArticleRecord:
        """Return the hydrated view of *slug*; ``ArticleNotFound`` if absent."""
        async with self.transaction():
            return await self._fetch_one(Article.slug == slug, viewer_id)

    async def update(self, article_id: int, changes: dict, viewer_id: int | None = None) -> ArticleRecord:
        """
        Apply *changes* (a subset of title/description/body), refresh
        ``updated_at`` and return the hydrated view.  The slug is never
        touched.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot update article field(s): {', '.join(sorted(unknown))}")

        async with self.transaction():
            result = await self.session.execute(
                update(Article)
                .where(Article.id == article_id)
                .values(**changes, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise ArticleNotFound()
            return await self._fetch_one(Article.id == article_id, viewer_id)

    async def delete(self, article_id: int) -> None:
        """Delete the article; tag links, favorites and comments cascade."""
        async with self.transaction():
            result = await self.session.execute(delete(Article).where(Article.id == article_id))
            if result.rowcount == 0:
                raise ArticleNotFound()

    async def add_favorite(self, user_id: int, article_id: int) -> None:
        """Record that *user_id* favorites *article_id*; repeating is a no-op."""
        stmt = self.insert_ignoring_conflicts(favorites).values(
            user_id=user_id, article_id=article_id
        )
        async with self.transaction(on_foreign_key=ArticleNotFound):
            await self.require_user(user_id)
            await self.session.execute(stmt)

    async def remove_favorite(self, user_id: int, article_id: int) -> None:
        stmt = delete(favorites).where(
            favorites.c.user_id == user_id,
            favorites.c.article_id == article_id,
        )
        async with self.transaction():
            await self.session.execute(stmt)

    async def list_articles(
        self,
        viewer_id: int | None = None,
        tag: str | None = None,
        author: str | None = None,
        favorited_by: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> ArticlePage:
        """
        Return one page of articles, newest first, optionally filtered by
        tag name, author username, and the username of a favoriting user.
        """
        conditions = []
        if tag is not None:
            conditions.append(
                Article.id.in_(
                    select(article_tags.c.article_id)
                    .join(Tag, Tag.id == article_tags.c.tag_id)
                    .where(Tag.name == tag)
                )
            )
        if author is not None:
            conditions.append(
                Article.author_id.in_(select(User.id).where(User.username == author))
            )
        if favorited_by is not None:
            conditions.append(
                Article.id.in_(
                    select(favorites.c.article_id)
                    .join(User, User.id == favorites.c.user_id)
                    .where(User.username == favorited_by)
                )
            )
        return await self._page(conditions, viewer_id, limit, offset)

    async def feed(self, user_id: int, limit: int = 20, offset: int = 0) -> ArticlePage:
        """Return one page of articles written by users *user_id* follows."""
        conditions = [
            Article.author_id.in_(
                select(follows.c.following_id).where(follows.c.follower_id == user_id)
            )
        ]
        return await self._page(conditions, user_id, limit, offset)

    # ------------------------------------------------------------------
    # Internals (run inside an open transaction)
    # ------------------------------------------------------------------

    async def _page(self, conditions: list, viewer_id: int | None, limit: int, offset: int) -> ArticlePage:
        count_q = select(func.count()).select_from(Article).where(*conditions)
        page_q = (
            _view_query(viewer_id)
            .where(*conditions)
            .order_by(Article.created_at.desc(), Article.id.desc())
            .limit(limit)
            .offset(offset)
        )
        async with self.transaction():
            total: int = (await self.session.execute(count_q)).scalar_one()
            rows = (await self.session.execute(page_q)).all()
            tags = await self._tag_lists([row.id for row in rows])
        return ArticlePage(
            articles=[_to_record(row, tags.get(row.id, [])) for row in rows],
            total=total,
        )

    async def _fetch_one(self, condition, viewer_id: int | None) -> ArticleRecord:
        row = (await self.session.execute(_view_query(viewer_id).where(condition))).one_or_none()
        if row is None:
            raise ArticleNotFound()
        tags = await self._tag_lists([row.id])
        return _to_record(row, tags.get(row.id, []))

    async def _tag_lists(self, article_ids: list[int]) -> dict[int, list[str]]:
        if not article_ids:
            return {}
        q = (
            select(article_tags.c.article_id, Tag.name)
            .join(Tag, Tag.id == article_tags.c.tag_id)
            .where(article_tags.c.article_id.in_(article_ids))
            .order_by(article_tags.c.article_id, article_tags.c.position)
        )
        tag_lists: dict[int, list[str]] = {}
        for article_id, name in (await self.session.execute(q)).all():
            tag_lists.setdefault(article_id, []).append(name)
        return tag_lists

    async def _upsert_tag(self, name: str) -> int:
        """Insert *name* into tags unless present; return its id either way."""
        await self.session.execute(self.insert_ignoring_conflicts(Tag).values(name=name))
        return (await self.session.execute(select(Tag.id).where(Tag.name == name))).scalar_one()
