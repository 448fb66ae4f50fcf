from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, or_
from sqlalchemy.exc import IntegrityError
import uuid

from app.core.errors import ConflictError
from app.db.models.document import Document as DocumentModel
from app.db.models.user import User as UserModel, Notification as NotificationModel
from app.domains.identity.entities import User, Notification


class UserRepository:
    """Репозиторий для работы с пользователями"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: User) -> User:
        """Создание нового пользователя"""
        db_user = UserModel(
            uuid=user.uuid,
            name=user.name,
            email=user.email
        )

        self.session.add(db_user)
        try:
            await self.session.commit()
            await self.session.refresh(db_user)
            return self._to_domain(db_user)
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("User with this email already exists")

    async def get_by_uuid(self, user_uuid: uuid.UUID) -> Optional[User]:
        """Получение пользователя по UUID"""
        result = await self.session.execute(
            select(UserModel).where(UserModel.uuid == user_uuid)
        )
        db_user = result.scalar_one_or_none()
        return self._to_domain(db_user) if db_user else None

    async def exists(self, user_uuid: uuid.UUID) -> bool:
        """Проверка существования пользователя"""
        result = await self.session.execute(
            select(UserModel.uuid).where(UserModel.uuid == user_uuid)
        )
        return result.scalar_one_or_none() is not None

    async def search(
        self,
        query: str,
        exclude_uuid: Optional[uuid.UUID] = None,
        limit: int = 10
    ) -> List[User]:
        """Поиск пользователей по имени или email"""
        pattern = f"%{query}%"
        stmt = select(UserModel).where(
            or_(UserModel.name.ilike(pattern), UserModel.email.ilike(pattern))
        )
        if exclude_uuid:
            stmt = stmt.where(UserModel.uuid != exclude_uuid)

        result = await self.session.execute(stmt.order_by(UserModel.name).limit(limit))
        return [self._to_domain(user) for user in result.scalars().all()]

    async def add_notification(self, notification: Notification) -> Notification:
        """Добавление уведомления пользователю"""
        db_notification = NotificationModel(
            uuid=notification.uuid,
            user_id=notification.user_id,
            document_id=notification.document_id,
            mentioned_by=notification.mentioned_by,
            read=notification.read,
            timestamp=notification.timestamp
        )

        self.session.add(db_notification)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Notification could not be stored")
        return notification

    async def get_notifications(self, user_uuid: uuid.UUID) -> List[Notification]:
        """Уведомления пользователя, самые новые первыми.

        Уведомления об удаленных документах отбрасываются внутренним join.
        """
        result = await self.session.execute(
            select(NotificationModel, DocumentModel.title, UserModel.name)
            .join(DocumentModel, DocumentModel.uuid == NotificationModel.document_id)
            .outerjoin(UserModel, UserModel.uuid == NotificationModel.mentioned_by)
            .where(NotificationModel.user_id == user_uuid)
            .order_by(NotificationModel.timestamp.desc(), NotificationModel.created_at.desc())
        )

        return [
            self._notification_to_domain(db_notification, document_title, mentioned_by_name)
            for db_notification, document_title, mentioned_by_name in result.all()
        ]

    async def mark_notification_read(self, user_uuid: uuid.UUID, notification_uuid: uuid.UUID) -> bool:
        """Отметка уведомления прочитанным"""
        stmt = (
            update(NotificationModel)
            .where(
                NotificationModel.uuid == notification_uuid,
                NotificationModel.user_id == user_uuid
            )
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    def _to_domain(self, db_user: UserModel) -> User:
        """Преобразование модели БД в доменную сущность"""
        return User(
            uuid=db_user.uuid,
            name=db_user.name,
            email=db_user.email,
            created_at=db_user.created_at,
            updated_at=db_user.updated_at
        )

    def _notification_to_domain(
        self,
        db_notification: NotificationModel,
        document_title: Optional[str] = None,
        mentioned_by_name: Optional[str] = None
    ) -> Notification:
        return Notification(
            uuid=db_notification.uuid,
            user_id=db_notification.user_id,
            document_id=db_notification.document_id,
            mentioned_by=db_notification.mentioned_by,
            read=db_notification.read,
            timestamp=db_notification.timestamp,
            document_title=document_title,
            mentioned_by_name=mentioned_by_name
        )
