import uuid
from datetime import datetime, timezone
from typing import Optional


class User:
    """Сущность пользователя домена Identity"""

    def __init__(
        self,
        uuid: uuid.UUID,
        name: str,
        email: str,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.name = name
        self.email = email
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or datetime.now(timezone.utc)

    @classmethod
    def create_user(cls, name: str, email: str) -> "User":
        """Создание нового пользователя"""
        return cls(uuid=uuid.uuid4(), name=name.strip(), email=email.strip().lower())

    def __eq__(self, other) -> bool:
        if not isinstance(other, User):
            return False
        return self.uuid == other.uuid

    def __repr__(self) -> str:
        return f"User(uuid={self.uuid}, email={self.email}, name={self.name})"


class Notification:
    """Уведомление об упоминании пользователя в документе"""

    def __init__(
        self,
        uuid: uuid.UUID,
        user_id: uuid.UUID,
        document_id: uuid.UUID,
        mentioned_by: uuid.UUID,
        read: bool = False,
        timestamp: Optional[datetime] = None,
        document_title: Optional[str] = None,
        mentioned_by_name: Optional[str] = None
    ):
        self.uuid = uuid
        self.user_id = user_id
        self.document_id = document_id
        self.mentioned_by = mentioned_by
        self.read = read
        self.timestamp = timestamp or datetime.now(timezone.utc)
        self.document_title = document_title
        self.mentioned_by_name = mentioned_by_name

    @classmethod
    def create_notification(
        cls,
        user_id: uuid.UUID,
        document_id: uuid.UUID,
        mentioned_by: uuid.UUID,
        timestamp: Optional[datetime] = None
    ) -> "Notification":
        return cls(
            uuid=uuid.uuid4(),
            user_id=user_id,
            document_id=document_id,
            mentioned_by=mentioned_by,
            timestamp=timestamp
        )

    def __repr__(self) -> str:
        return f"Notification(uuid={self.uuid}, user_id={self.user_id}, document_id={self.document_id})"
