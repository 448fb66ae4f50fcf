import logging
import uuid
from typing import Optional, List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import transaction
from app.core.errors import (
    DocCollabError, ForbiddenError, InvalidArgumentError, NotFoundError
)
from app.db.repositories.document_repository import DocumentRepository, DocumentVersionRepository
from app.domains.documents.entities import (
    Document, DocumentSnapshot, DocumentVersion, Permission
)
from app.domains.documents.mentions import MentionOutcome, MentionReconciler, has_mentions
from app.domains.documents.schemas import DocumentCreate, DocumentUpdate
from app.domains.documents.versioning import (
    VersionDiff, calculate_counts, determine_change_type, diff_versions, generate_change_summary
)
from app.domains.identity.services import IdentityService, NotificationService

logger = logging.getLogger(__name__)

INITIAL_VERSION_SUMMARY = "Document created"


class DocumentVersionService:
    """Сервис для работы с версиями документов"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.version_repository = DocumentVersionRepository(session)
        self.document_repository = DocumentRepository(session)

    async def create_version(
        self,
        document_uuid: uuid.UUID,
        snapshot: DocumentSnapshot,
        user_id: uuid.UUID,
        change_summary: Optional[str] = None
    ) -> DocumentVersion:
        """Создание новой версии документа в отдельной транзакции"""
        async with transaction(self.session):
            return await self.stage_version(document_uuid, snapshot, user_id, change_summary)

    async def stage_version(
        self,
        document_uuid: uuid.UUID,
        snapshot: DocumentSnapshot,
        user_id: uuid.UUID,
        change_summary: Optional[str] = None
    ) -> DocumentVersion:
        """Запись новой версии в текущую транзакцию сессии без фиксации.

        Номер версии равен текущему номеру документа плюс один. Запись версии
        и перевод указателя документа идут в одной транзакции с изменением
        документа: конкурент получает ConflictError, и все три записи
        откатываются вместе.
        """
        document = await self.document_repository.get_by_uuid(document_uuid)
        if not document:
            raise NotFoundError("Document not found", {"document_id": str(document_uuid)})

        current_version = document.current_version
        next_version = current_version + 1

        previous = None
        if current_version > 0:
            previous = await self.version_repository.get_version_by_number(document_uuid, current_version)
        previous_snapshot = previous.snapshot() if previous else None

        word_count, character_count = calculate_counts(snapshot.content)
        change_type = determine_change_type(previous_snapshot, snapshot)

        if change_summary:
            summary = change_summary
        elif previous_snapshot:
            summary = generate_change_summary(previous_snapshot, snapshot)
        else:
            summary = INITIAL_VERSION_SUMMARY

        version = DocumentVersion(
            uuid=uuid.uuid4(),
            document_id=document_uuid,
            version_number=next_version,
            title=snapshot.title,
            content=snapshot.content,
            visibility=snapshot.visibility,
            changed_by=user_id,
            change_type=change_type,
            change_summary=summary,
            word_count=word_count,
            character_count=character_count
        )

        created_version = await self.version_repository.create(version)
        await self.document_repository.advance_version(document_uuid, current_version, next_version)

        logger.info(
            f"Created version {next_version} ({change_type.value}) of document {document_uuid}"
        )
        return created_version

    async def get_version_history(
        self,
        document_uuid: uuid.UUID,
        limit: int = 50,
        offset: int = 0
    ) -> List[DocumentVersion]:
        """Получение версий документа, самые новые первыми"""
        return await self.version_repository.get_by_document(document_uuid, limit, offset)

    async def get_version(self, document_uuid: uuid.UUID, version_number: int) -> DocumentVersion:
        """Получение конкретной версии документа"""
        version = await self.version_repository.get_version_by_number(document_uuid, version_number)
        if not version:
            raise NotFoundError(
                "Version not found",
                {"document_id": str(document_uuid), "version": version_number}
            )
        return version

    async def compare_versions(
        self,
        document_uuid: uuid.UUID,
        version1: int,
        version2: int
    ) -> VersionDiff:
        """Сравнение двух версий документа"""
        versions = await self.version_repository.get_versions_by_numbers(
            document_uuid, [version1, version2]
        )
        v1 = versions.get(version1)
        v2 = versions.get(version2)

        if not v1 or not v2:
            raise NotFoundError(
                "One or both versions not found",
                {"document_id": str(document_uuid), "versions": [version1, version2]}
            )

        return diff_versions(v1, v2)


class DocumentService:
    """Сервис изменения документов: упоминания, доступ, снимки версий"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.document_repository = DocumentRepository(session)
        self.version_service = DocumentVersionService(session)
        self.identity_service = IdentityService(session)
        self.notification_service = NotificationService(session)
        self.mention_reconciler = MentionReconciler(self.identity_service.user_exists)

    async def create_document(self, document_data: DocumentCreate, author_id: uuid.UUID) -> Document:
        """Создание нового документа"""
        document = Document.create_document(
            title=document_data.title,
            author_id=author_id,
            content=document_data.content,
            visibility=document_data.visibility
        )

        # Доступы по упоминаниям входят в первую же запись документа
        outcome = MentionOutcome()
        if has_mentions(document.content):
            outcome = await self._reconcile(document, document.content, "", author_id)
            self._apply_shares(document, outcome)

        async with transaction(self.session):
            document = await self.document_repository.create(document)
            # Начальная версия (тип 'created')
            await self.version_service.stage_version(document.uuid, document.snapshot(), author_id)

        await self._dispatch_notifications(outcome)
        logger.info(f"Document {document.uuid} created by {author_id}")

        return await self._load(document.uuid)

    async def get_document(self, document_uuid: uuid.UUID, user_id: Optional[uuid.UUID]) -> Document:
        """Получение документа с проверкой прав на просмотр"""
        document = await self._load(document_uuid)

        if not document.can_view(user_id):
            raise ForbiddenError("Not authorized to view this document")

        return document

    async def get_public_document(self, document_uuid: uuid.UUID) -> Document:
        """Получение публичного документа без аутентификации"""
        document = await self.document_repository.get_by_uuid(document_uuid)

        # Приватный документ неотличим от отсутствующего
        if not document or not document.can_view(None):
            raise NotFoundError("Document not found", {"document_id": str(document_uuid)})

        return document

    async def update_document(
        self,
        document_uuid: uuid.UUID,
        update_data: DocumentUpdate,
        user_id: uuid.UUID
    ) -> Document:
        """Обновление документа"""
        document = await self._load(document_uuid)

        if not document.can_edit(user_id):
            raise ForbiddenError("User not authorized to update this document")

        old_snapshot = document.snapshot()

        document.apply_changes(
            title=update_data.title,
            content=update_data.content,
            visibility=update_data.visibility
        )

        outcome = MentionOutcome()
        if update_data.content is not None and document.content != old_snapshot.content:
            outcome = await self._reconcile(document, document.content, old_snapshot.content, user_id)
            self._apply_shares(document, outcome)

        # Документ, доступы и версия фиксируются вместе или не фиксируются вовсе
        async with transaction(self.session):
            document = await self.document_repository.update(document)
            new_snapshot = document.snapshot()
            if new_snapshot != old_snapshot:
                await self.version_service.stage_version(document_uuid, new_snapshot, user_id)

        await self._dispatch_notifications(outcome)

        return await self._load(document_uuid)

    async def delete_document(self, document_uuid: uuid.UUID, user_id: uuid.UUID) -> None:
        """Удаление документа (только автор)"""
        document = await self._load(document_uuid)

        if not document.is_author(user_id):
            raise ForbiddenError("User not authorized to delete this document")

        async with transaction(self.session):
            await self.document_repository.delete(document_uuid)
        logger.info(f"Document {document_uuid} deleted by {user_id}")

    async def share_document(
        self,
        document_uuid: uuid.UUID,
        user_id: uuid.UUID,
        target_user_id: uuid.UUID,
        permission: str
    ) -> Document:
        """Предоставление доступа к документу (только автор)"""
        if permission not in {p.value for p in Permission}:
            raise InvalidArgumentError('Permission must be either "view" or "edit"')

        document = await self._load(document_uuid)

        if not document.is_author(user_id):
            raise ForbiddenError("Only the document author can share the document")

        if target_user_id == user_id:
            raise InvalidArgumentError("Cannot share document with yourself")

        if not await self.identity_service.user_exists(target_user_id):
            raise NotFoundError("User not found", {"user_id": str(target_user_id)})

        document.share_with(target_user_id, Permission(permission))
        async with transaction(self.session):
            document = await self.document_repository.update(document)

        logger.info(f"Document {document_uuid} shared with {target_user_id} ({permission})")
        return document

    async def unshare_document(
        self,
        document_uuid: uuid.UUID,
        user_id: uuid.UUID,
        target_user_id: uuid.UUID
    ) -> Document:
        """Удаление доступа пользователя (только автор)"""
        document = await self._load(document_uuid)

        if not document.is_author(user_id):
            raise ForbiddenError("Only the document author can manage sharing")

        if not document.unshare(target_user_id):
            raise NotFoundError(
                "User is not shared on this document",
                {"document_id": str(document_uuid), "user_id": str(target_user_id)}
            )

        async with transaction(self.session):
            return await self.document_repository.update(document)

    async def get_version_history(
        self,
        document_uuid: uuid.UUID,
        user_id: uuid.UUID,
        limit: int = 50
    ) -> List[DocumentVersion]:
        await self.get_document(document_uuid, user_id)
        return await self.version_service.get_version_history(document_uuid, limit)

    async def get_version(
        self,
        document_uuid: uuid.UUID,
        version_number: int,
        user_id: uuid.UUID
    ) -> DocumentVersion:
        await self.get_document(document_uuid, user_id)
        return await self.version_service.get_version(document_uuid, version_number)

    async def compare_versions(
        self,
        document_uuid: uuid.UUID,
        version1: int,
        version2: int,
        user_id: uuid.UUID
    ) -> VersionDiff:
        await self.get_document(document_uuid, user_id)
        return await self.version_service.compare_versions(document_uuid, version1, version2)

    async def restore_version(
        self,
        document_uuid: uuid.UUID,
        version_number: int,
        user_id: uuid.UUID
    ) -> Tuple[DocumentVersion, Document]:
        """Восстановление документа из версии"""
        document = await self._load(document_uuid)

        if not document.can_edit(user_id):
            raise ForbiddenError("User not authorized to restore this document")

        version = await self.version_service.get_version(document_uuid, version_number)

        old_content = document.content
        document.apply_changes(
            title=version.title,
            content=version.content,
            visibility=version.visibility
        )

        outcome = MentionOutcome()
        if document.content != old_content:
            outcome = await self._reconcile(document, document.content, old_content, user_id)
            self._apply_shares(document, outcome)

        # Восстановление всегда создает новую версию, история не переписывается
        async with transaction(self.session):
            await self.document_repository.update(document)
            restored_version = await self.version_service.stage_version(
                document_uuid,
                version.snapshot(),
                user_id,
                f"Restored to version {version_number}"
            )

        await self._dispatch_notifications(outcome)

        return restored_version, await self._load(document_uuid)

    async def _load(self, document_uuid: uuid.UUID) -> Document:
        document = await self.document_repository.get_by_uuid(document_uuid)
        if not document:
            raise NotFoundError("Document not found", {"document_id": str(document_uuid)})
        return document

    async def _reconcile(
        self,
        document: Document,
        new_content: str,
        old_content: str,
        user_id: uuid.UUID
    ) -> MentionOutcome:
        """Сверка упоминаний; сбой не должен ломать сохранение документа"""
        try:
            return await self.mention_reconciler.reconcile(document, new_content, old_content, user_id)
        except Exception:
            logger.exception(f"Error in mention processing for document {document.uuid}")
            return MentionOutcome()

    def _apply_shares(self, document: Document, outcome: MentionOutcome) -> bool:
        applied = False
        for share in outcome.new_shares:
            applied = document.grant_view_if_absent(share.user_id) or applied
        return applied

    async def _dispatch_notifications(self, outcome: MentionOutcome) -> None:
        """Доставка уведомлений после сохранения; каждая независимо"""
        for intent in outcome.notifications:
            try:
                await self.notification_service.notify(
                    intent.recipient_id,
                    intent.document_id,
                    intent.mentioned_by,
                    intent.timestamp
                )
            except DocCollabError as e:
                logger.warning(f"Notification for user {intent.recipient_id} not delivered: {e.message}")
            except Exception:
                logger.exception(f"Error notifying user {intent.recipient_id}")
