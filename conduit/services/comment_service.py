"""
Comment service — comments attached to an article.

Every operation resolves the article by slug first, so an unknown slug is
always ``ArticleNotFound`` regardless of the comment id supplied.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.errors import CommentNotFound, NotAuthorized
from conduit.repositories import ArticleRepository, CommentRepository
from conduit.repositories.records import CommentRecord
from conduit.schemas import Comment
from conduit.services.profile_service import profile_view
from conduit.services.translation import repository_errors


def comment_view(record: CommentRecord) -> Comment:
    return Comment(
        id=record.id,
        created_at=record.created_at,
        updated_at=record.updated_at,
        body=record.body,
        author=profile_view(record.author),
    )


async def add_comment(db: AsyncSession, user_id: int, slug: str, body: str) -> Comment:
    with repository_errors():
        article = await ArticleRepository(db).get_by_slug(slug)
        record = await CommentRepository(db).create(article.id, user_id, body)
    return comment_view(record)


async def get_comments(db: AsyncSession, slug: str, viewer_id: int | None = None) -> list[Comment]:
    """Return the article's comments oldest first."""
    with repository_errors():
        article = await ArticleRepository(db).get_by_slug(slug)
        records = await CommentRepository(db).list_for_article(article.id, viewer_id)
    return [comment_view(record) for record in records]


async def delete_comment(db: AsyncSession, user_id: int, slug: str, comment_id: int) -> None:
    """
    Delete *comment_id* from the article at *slug*.

    A comment that exists but belongs to a different article is reported as
    ``CommentNotFound``; only its author may delete it.
    """
    comments = CommentRepository(db)
    with repository_errors():
        article = await ArticleRepository(db).get_by_slug(slug)
        record = await comments.get(comment_id)
        if record.article_id != article.id:
            raise CommentNotFound()
        if record.author_id != user_id:
            raise NotAuthorized()
        await comments.delete(comment_id)
