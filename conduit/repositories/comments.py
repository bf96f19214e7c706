from sqlalchemy import delete, select

from conduit.models import Comment, User
from conduit.repositories.base import Repository
from conduit.repositories.errors import ArticleNotFound, CommentNotFound
from conduit.repositories.profiles import following_expression, profile_from_row
from conduit.repositories.records import CommentRecord, as_utc


def _view_query(viewer_id: int | None):
    return select(
        Comment.id,
        Comment.body,
        Comment.article_id,
        Comment.author_id,
        Comment.created_at,
        Comment.updated_at,
        User.username.label("author_username"),
        User.bio.label("author_bio"),
        User.image.label("author_image"),
        following_expression(viewer_id, Comment.author_id).label("author_following"),
    ).join(User, User.id == Comment.author_id)


def _to_record(row) -> CommentRecord:
    return CommentRecord(
        id=row.id,
        body=row.body,
        article_id=row.article_id,
        author_id=row.author_id,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
        author=profile_from_row(row, prefix="author_"),
    )


class CommentRepository(Repository):
    async def create(self, article_id: int, author_id: int, body: str) -> CommentRecord:
        """
        Insert a comment on *article_id*.  Raises ``ArticleNotFound`` when
        the article disappeared between lookup and insert, ``UserNotFound``
        for an unknown author.
        """
        async with self.transaction(on_foreign_key=ArticleNotFound):
            await self.require_user(author_id)
            comment = Comment(body=body, article_id=article_id, author_id=author_id)
            self.session.add(comment)
            await self.session.flush()
            return await self._fetch_one(comment.id, viewer_id=None)

    async def get(self, comment_id: int, viewer_id: int | None = None) -> CommentRecord:
        async with self.transaction():
            return await self._fetch_one(comment_id, viewer_id)

    async def list_for_article(self, article_id: int, viewer_id: int | None = None) -> list[CommentRecord]:
        """Return the article's comments, oldest first."""
        q = (
            _view_query(viewer_id)
            .where(Comment.article_id == article_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        async with self.transaction():
            rows = (await self.session.execute(q)).all()
        return [_to_record(row) for row in rows]

    async def delete(self, comment_id: int) -> None:
        async with self.transaction():
            result = await self.session.execute(delete(Comment).where(Comment.id == comment_id))
            if result.rowcount == 0:
                raise CommentNotFound()

    async def _fetch_one(self, comment_id: int, viewer_id: int | None) -> CommentRecord:
        row = (
            await self.session.execute(_view_query(viewer_id).where(Comment.id == comment_id))
        ).one_or_none()
        if row is None:
            raise CommentNotFound()
        return _to_record(row)
