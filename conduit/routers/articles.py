from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db
from conduit.dependencies import (
    Credentials,
    PaginationParams,
    get_credentials,
    get_optional_credentials,
    viewer_id,
)
from conduit.schemas import (
    MultipleArticlesResponse,
    NewArticleRequest,
    SingleArticleResponse,
    UpdateArticleRequest,
)
from conduit.services import article_service

router = APIRouter(prefix="/api/articles", tags=["articles"])

@router.get("", response_model=MultipleArticlesResponse)
async def list_articles(
    tag: str | None = Query(None),
    author: str | None = Query(None),
    favorited: str | None = Query(None),
    pagination: PaginationParams = Depends(),
    credentials: Credentials | None = Depends(get_optional_credentials),
    db: AsyncSession = Depends(get_db),
):
    articles, count = await article_service.list_articles(
        db,
        viewer_id=viewer_id(credentials),
        tag=tag,
        author=author,
        favorited=favorited,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return MultipleArticlesResponse(articles=articles, articles_count=count)

# Registered before "/{slug}" so "feed" is never read as a slug.
@router.get("/feed", response_model=MultipleArticlesResponse)
async def feed_articles(
    pagination: PaginationParams = Depends(),
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
):
    articles, count = await article_service.feed_articles(
        db, credentials.user_id, limit=pagination.limit, offset=pagination.offset
    )
    return MultipleArticlesResponse(articles=articles, articles_count=count)

@router.get("/{slug}", response_model=SingleArticleResponse)
async def get_article(
    slug: str,
    credentials: Credentials | None = Depends(get_optional_credentials),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.get_article(db, slug, viewer_id(credentials))
    return SingleArticleResponse(article=article)

@router.post("", status_code=201, response_model=SingleArticleResponse)
async def create_article(
    data: NewArticleRequest,
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.create_article(
        db,
        credentials.user_id,
        title=data.article.title,
        description=data.article.description,
        body=data.article.body,
        tag_list=data.article.tag_list,
    )
    return SingleArticleResponse(article=article)

@router.put("/{slug}", response_model=SingleArticleResponse)
async def update_article(
    slug: str,
    data: UpdateArticleRequest,
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.update_article(db, credentials.user_id, slug, data.article.changes())
    return SingleArticleResponse(article=article)

@router.delete("/{slug}", status_code=204)
async def delete_article(
    slug: str,
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
):
    await article_service.delete_article(db, credentials.user_id, slug)
    return Response(status_code=204)

@router.post("/{slug}/favorite", response_model=SingleArticleResponse)
async def favorite_article(
    slug: str,
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.favorite_article(db, credentials.user_id, slug)
    return SingleArticleResponse(article=article)

@router.delete("/{slug}/favorite", response_model=SingleArticleResponse)
async def unfavorite_article(
    slug: str,
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.unfavorite_article(db, credentials.user_id, slug)
    return SingleArticleResponse(article=article)
