from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db
from conduit.dependencies import Credentials, get_credentials, get_optional_credentials, viewer_id
from conduit.schemas import ProfileResponse
from conduit.services import profile_service

router = APIRouter(prefix="/api/profiles", tags=["profiles"])

@router.get("/{username}", response_model=ProfileResponse)
async def get_profile(
    username: str,
    credentials: Credentials | None = Depends(get_optional_credentials),
    db: AsyncSession = Depends(get_db),
):
    profile = await profile_service.get_profile(db, username, viewer_id(credentials))
    return ProfileResponse(profile=profile)

@router.post("/{username}/follow", response_model=ProfileResponse)
async def follow_user(
    username: str,
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
):
    profile = await profile_service.follow(db, credentials.user_id, username)
    return ProfileResponse(profile=profile)

@router.delete("/{username}/follow", response_model=ProfileResponse)
async def unfollow_user(
    username: str,
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
):
    profile = await profile_service.unfollow(db, credentials.user_id, username)
    return ProfileResponse(profile=profile)
