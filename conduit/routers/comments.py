from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db
from conduit.dependencies import Credentials, get_credentials, get_optional_credentials, viewer_id
from conduit.schemas import MultipleCommentsResponse, NewCommentRequest, SingleCommentResponse
from conduit.services import comment_service

router = APIRouter(prefix="/api/articles/{slug}/comments", tags=["comments"])

@router.post("", status_code=201, response_model=SingleCommentResponse)
async def add_comment(
    slug: str,
    data: NewCommentRequest,
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
):
    comment = await comment_service.add_comment(db, credentials.user_id, slug, data.comment.body)
    return SingleCommentResponse(comment=comment)

@router.get("", response_model=MultipleCommentsResponse)
async def get_comments(
    slug: str,
    credentials: Credentials | None = Depends(get_optional_credentials),
    db: AsyncSession = Depends(get_db),
):
    comments = await comment_service.get_comments(db, slug, viewer_id(credentials))
    return MultipleCommentsResponse(comments=comments)

@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    slug: str,
    comment_id: int,
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.delete_comment(db, credentials.user_id, slug, comment_id)
    return Response(status_code=204)
