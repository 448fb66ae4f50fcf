import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List


class Visibility(str, Enum):
    """Видимость документа"""
    PUBLIC = "public"
    PRIVATE = "private"
    SHARED = "shared"


class Permission(str, Enum):
    """Права доступа для пользователя, с которым поделились документом"""
    VIEW = "view"
    EDIT = "edit"


class ChangeType(str, Enum):
    """Классификация изменений между соседними версиями"""
    CREATED = "created"
    UPDATED = "updated"
    TITLE_CHANGED = "title_changed"
    CONTENT_CHANGED = "content_changed"
    VISIBILITY_CHANGED = "visibility_changed"


@dataclass
class Share:
    """Запись о предоставлении доступа к документу"""
    user_id: uuid.UUID
    permission: Permission = Permission.VIEW


@dataclass(frozen=True)
class DocumentSnapshot:
    """Снимок отслеживаемых полей документа"""
    title: str
    content: str
    visibility: Visibility


class Document:
    """Сущность документа домена Documents"""

    def __init__(
        self,
        uuid: uuid.UUID,
        title: str,
        author_id: uuid.UUID,
        content: str = "",
        visibility: Visibility = Visibility.PRIVATE,
        shared_with: Optional[List[Share]] = None,
        current_version: int = 0,
        last_version_created_at: Optional[datetime] = None,
        revision: int = 0,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.title = title
        self.content = content
        self.author_id = author_id
        self.visibility = Visibility(visibility)
        self.shared_with = list(shared_with or [])
        self.current_version = current_version
        self.revision = revision
        now = datetime.now(timezone.utc)
        self.last_version_created_at = last_version_created_at or now
        self.created_at = created_at or now
        self.updated_at = updated_at or now

    @classmethod
    def create_document(
        cls,
        title: str,
        author_id: uuid.UUID,
        content: str = "",
        visibility: Visibility = Visibility.PRIVATE
    ) -> "Document":
        """Создание нового документа (версия 0 до первого снимка)"""
        return cls(
            uuid=uuid.uuid4(),
            title=title,
            content=content,
            author_id=author_id,
            visibility=visibility
        )

    def snapshot(self) -> DocumentSnapshot:
        return DocumentSnapshot(title=self.title, content=self.content, visibility=self.visibility)

    def apply_changes(
        self,
        title: Optional[str] = None,
        content: Optional[str] = None,
        visibility: Optional[Visibility] = None
    ) -> None:
        """Применение переданных полей; None означает 'не менять'"""
        if title is not None:
            self.title = title
        if content is not None:
            self.content = content
        if visibility is not None:
            self.visibility = Visibility(visibility)
        self.updated_at = datetime.now(timezone.utc)

    def is_author(self, user_id: uuid.UUID) -> bool:
        return self.author_id == user_id

    def find_share(self, user_id: uuid.UUID) -> Optional[Share]:
        for share in self.shared_with:
            if share.user_id == user_id:
                return share
        return None

    def can_view(self, user_id: Optional[uuid.UUID]) -> bool:
        """Проверка прав на просмотр"""
        if self.visibility == Visibility.PUBLIC:
            return True
        if user_id is None:
            return False
        return self.is_author(user_id) or self.find_share(user_id) is not None

    def can_edit(self, user_id: uuid.UUID) -> bool:
        """Проверка прав на редактирование"""
        if self.is_author(user_id):
            return True
        share = self.find_share(user_id)
        return share is not None and share.permission == Permission.EDIT

    def share_with(self, user_id: uuid.UUID, permission: Permission) -> Share:
        """Добавление или обновление доступа пользователя"""
        if self.is_author(user_id):
            raise ValueError("Cannot share document with its author")

        share = self.find_share(user_id)
        if share:
            share.permission = Permission(permission)
        else:
            share = Share(user_id=user_id, permission=Permission(permission))
            self.shared_with.append(share)
        return share

    def grant_view_if_absent(self, user_id: uuid.UUID) -> bool:
        """Выдача права просмотра, не понижая существующий доступ"""
        if self.is_author(user_id) or self.find_share(user_id):
            return False
        self.shared_with.append(Share(user_id=user_id, permission=Permission.VIEW))
        return True

    def unshare(self, user_id: uuid.UUID) -> bool:
        """Удаление доступа пользователя"""
        share = self.find_share(user_id)
        if not share:
            return False
        self.shared_with.remove(share)
        return True

    def __eq__(self, other) -> bool:
        if not isinstance(other, Document):
            return False
        return self.uuid == other.uuid

    def __repr__(self) -> str:
        return f"Document(uuid={self.uuid}, title={self.title}, version={self.current_version})"


class DocumentVersion:
    """Неизменяемый снимок документа"""

    def __init__(
        self,
        uuid: uuid.UUID,
        document_id: uuid.UUID,
        version_number: int,
        title: str,
        content: str,
        visibility: Visibility,
        changed_by: uuid.UUID,
        change_type: ChangeType,
        change_summary: str = "",
        word_count: int = 0,
        character_count: int = 0,
        created_at: Optional[datetime] = None
    ):
        self.uuid = uuid
        self.document_id = document_id
        self.version_number = version_number
        self.title = title
        self.content = content
        self.visibility = Visibility(visibility)
        self.changed_by = changed_by
        self.change_type = ChangeType(change_type)
        self.change_summary = change_summary
        self.word_count = word_count
        self.character_count = character_count
        self.created_at = created_at or datetime.now(timezone.utc)

    def snapshot(self) -> DocumentSnapshot:
        return DocumentSnapshot(title=self.title, content=self.content, visibility=self.visibility)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DocumentVersion):
            return False
        return self.uuid == other.uuid

    def __repr__(self) -> str:
        return f"DocumentVersion(uuid={self.uuid}, document_id={self.document_id}, version={self.version_number})"
