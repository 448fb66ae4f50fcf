from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from app.core.auth import get_current_user_id
from app.core.db import get_db
from app.domains.identity.schemas import UserResponse, UserSearchResponse
from app.domains.identity.services import IdentityService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=UserSearchResponse)
async def search_users(
    q: str = Query("", max_length=100),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Поиск пользователей для упоминаний (без текущего пользователя)"""
    identity_service = IdentityService(db)
    users = await identity_service.search_users(q, exclude_uuid=user_id)
    return UserSearchResponse(
        users=[UserResponse.model_validate(user) for user in users],
        query=q
    )


@router.get("/{user_uuid}", response_model=UserResponse)
async def get_user(
    user_uuid: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Получение пользователя по UUID"""
    identity_service = IdentityService(db)
    user = await identity_service.get_user(user_uuid)
    return UserResponse.model_validate(user)
