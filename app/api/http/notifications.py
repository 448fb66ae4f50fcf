from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from app.core.auth import get_current_user_id
from app.core.db import get_db
from app.domains.documents.schemas import AckResponse
from app.domains.identity.schemas import NotificationResponse
from app.domains.identity.services import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=List[NotificationResponse])
async def get_notifications(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Уведомления текущего пользователя, самые новые первыми"""
    notification_service = NotificationService(db)
    notifications = await notification_service.get_notifications(user_id)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.put("/{notification_uuid}/read", response_model=AckResponse)
async def mark_notification_as_read(
    notification_uuid: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Отметка уведомления прочитанным"""
    notification_service = NotificationService(db)
    await notification_service.mark_as_read(user_id, notification_uuid)
    return AckResponse(message="Notification marked as read")
