import logging
import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import InvalidArgumentError, NotFoundError
from app.db.repositories.user_repository import UserRepository
from app.domains.identity.entities import User, Notification
from app.domains.identity.schemas import UserCreate

logger = logging.getLogger(__name__)


class IdentityService:
    """Справочник пользователей: существование, поиск, регистрация профиля"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repository = UserRepository(session)

    async def register_user(self, user_data: UserCreate) -> User:
        """Создание профиля пользователя"""
        user = User.create_user(name=user_data.name, email=user_data.email)
        return await self.user_repository.create(user)

    async def get_user(self, user_uuid: uuid.UUID) -> User:
        user = await self.user_repository.get_by_uuid(user_uuid)
        if not user:
            raise NotFoundError("User not found", {"user_id": str(user_uuid)})
        return user

    async def user_exists(self, user_uuid: uuid.UUID) -> bool:
        return await self.user_repository.exists(user_uuid)

    async def search_users(
        self,
        query: str,
        exclude_uuid: Optional[uuid.UUID] = None,
        limit: Optional[int] = None
    ) -> List[User]:
        """Поиск пользователей для упоминаний"""
        if not query or not query.strip():
            raise InvalidArgumentError("Search query is required")

        return await self.user_repository.search(
            query.strip(),
            exclude_uuid=exclude_uuid,
            limit=limit or settings.user_search_limit
        )


class NotificationService:
    """Сервис уведомлений об упоминаниях"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repository = UserRepository(session)

    async def notify(
        self,
        user_uuid: uuid.UUID,
        document_id: uuid.UUID,
        mentioned_by: uuid.UUID,
        timestamp=None
    ) -> Notification:
        """Добавление уведомления в начало списка пользователя"""
        if not await self.user_repository.exists(user_uuid):
            raise NotFoundError("User not found", {"user_id": str(user_uuid)})

        notification = Notification.create_notification(
            user_id=user_uuid,
            document_id=document_id,
            mentioned_by=mentioned_by,
            timestamp=timestamp
        )
        await self.user_repository.add_notification(notification)
        logger.info(f"Pushed in-app notification to user {user_uuid} for document {document_id}")
        return notification

    async def get_notifications(self, user_uuid: uuid.UUID) -> List[Notification]:
        return await self.user_repository.get_notifications(user_uuid)

    async def mark_as_read(self, user_uuid: uuid.UUID, notification_uuid: uuid.UUID) -> None:
        if not await self.user_repository.mark_notification_read(user_uuid, notification_uuid):
            raise NotFoundError("Notification not found", {"notification_id": str(notification_uuid)})
