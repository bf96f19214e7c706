from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db
from conduit.dependencies import Credentials, get_credentials
from conduit.schemas import LoginUserRequest, NewUserRequest, UpdateUserRequest, UserResponse
from conduit.services import user_service

router = APIRouter(prefix="/api", tags=["users"])

@router.post("/users", status_code=201, response_model=UserResponse)
async def register(data: NewUserRequest, db: AsyncSession = Depends(get_db)):
    user = await user_service.register(db, data.user.username, data.user.email, data.user.password)
    return UserResponse(user=user)

@router.post("/users/login", response_model=UserResponse)
async def login(data: LoginUserRequest, db: AsyncSession = Depends(get_db)):
    user = await user_service.login(db, data.user.email, data.user.password)
    return UserResponse(user=user)

@router.get("/user", response_model=UserResponse)
async def get_current_user(
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_current(db, credentials.user_id)
    # Echo the presented token; reads never mint a new one.
    return UserResponse(user=user.model_copy(update={"token": credentials.token}))

@router.put("/user", response_model=UserResponse)
async def update_current_user(
    data: UpdateUserRequest,
    credentials: Credentials = Depends(get_credentials),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update(db, credentials.user_id, data.user.changes())
    return UserResponse(user=user.model_copy(update={"token": credentials.token}))
