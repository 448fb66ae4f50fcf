from typing import Optional, List, TYPE_CHECKING
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from datetime import datetime, timezone
import uuid

from app.core.errors import ConflictError
from app.db.models.document import (
    Document as DocumentModel,
    DocumentShare as DocumentShareModel,
    DocumentVersion as DocumentVersionModel
)
from app.db.models.user import Notification as NotificationModel

if TYPE_CHECKING:
    from app.domains.documents.entities import Document, DocumentVersion


class DocumentRepository:
    """Репозиторий для работы с документами.

    Методы записи только сбрасывают изменения в сессию (flush); транзакцию
    фиксирует или откатывает сервис.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, document: "Document") -> "Document":
        """Создание нового документа"""
        db_document = DocumentModel(
            uuid=document.uuid,
            title=document.title,
            content=document.content,
            author_id=document.author_id,
            visibility=document.visibility,
            current_version=document.current_version,
            last_version_created_at=document.last_version_created_at,
            revision=document.revision
        )
        self.session.add(db_document)
        self.session.add_all(self._share_models(document))

        try:
            await self.session.flush()
        except IntegrityError:
            raise ConflictError("Document could not be created", {"document_id": str(document.uuid)})

        return await self.get_by_uuid(document.uuid)

    async def get_by_uuid(self, document_uuid: uuid.UUID) -> Optional["Document"]:
        """Получение документа по UUID вместе со списком доступа"""
        result = await self.session.execute(
            select(DocumentModel)
            .options(selectinload(DocumentModel.shares))
            .where(DocumentModel.uuid == document_uuid)
            .execution_options(populate_existing=True)
        )
        db_document = result.scalar_one_or_none()
        return self._to_domain(db_document) if db_document else None

    async def update(self, document: "Document") -> "Document":
        """Проверяемая запись документа: проходит только при совпадении revision"""
        stmt = (
            update(DocumentModel)
            .where(
                DocumentModel.uuid == document.uuid,
                DocumentModel.revision == document.revision
            )
            .values(
                title=document.title,
                content=document.content,
                visibility=document.visibility,
                updated_at=document.updated_at,
                revision=DocumentModel.revision + 1
            )
            .execution_options(synchronize_session=False)
        )

        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            raise ConflictError(
                "Document was modified concurrently",
                {"document_id": str(document.uuid), "revision": document.revision}
            )

        # Список доступа пишется целиком в той же транзакции
        await self.session.execute(
            delete(DocumentShareModel).where(DocumentShareModel.document_id == document.uuid)
        )
        self.session.add_all(self._share_models(document))

        try:
            await self.session.flush()
        except IntegrityError:
            raise ConflictError("Document shares could not be saved", {"document_id": str(document.uuid)})

        return await self.get_by_uuid(document.uuid)

    async def advance_version(
        self,
        document_uuid: uuid.UUID,
        expected_version: int,
        next_version: int
    ) -> datetime:
        """Атомарный перевод указателя текущей версии"""
        now = datetime.now(timezone.utc)
        stmt = (
            update(DocumentModel)
            .where(
                DocumentModel.uuid == document_uuid,
                DocumentModel.current_version == expected_version
            )
            .values(current_version=next_version, last_version_created_at=now)
            .execution_options(synchronize_session=False)
        )

        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            raise ConflictError(
                "Document version was advanced concurrently",
                {"document_id": str(document_uuid), "expected_version": expected_version}
            )
        return now

    async def delete(self, document_uuid: uuid.UUID) -> bool:
        """Удаление документа вместе с версиями, доступами и уведомлениями"""
        await self.session.execute(
            delete(NotificationModel).where(NotificationModel.document_id == document_uuid)
        )
        await self.session.execute(
            delete(DocumentVersionModel).where(DocumentVersionModel.document_id == document_uuid)
        )
        await self.session.execute(
            delete(DocumentShareModel).where(DocumentShareModel.document_id == document_uuid)
        )
        result = await self.session.execute(
            delete(DocumentModel).where(DocumentModel.uuid == document_uuid)
        )
        return result.rowcount > 0

    def _share_models(self, document: "Document") -> List[DocumentShareModel]:
        return [
            DocumentShareModel(
                document_id=document.uuid,
                user_id=share.user_id,
                permission=share.permission
            )
            for share in document.shared_with
        ]

    def _to_domain(self, db_document: DocumentModel) -> "Document":
        """Преобразование модели БД в доменную сущность"""
        from app.domains.documents.entities import Document, Share

        return Document(
            uuid=db_document.uuid,
            title=db_document.title,
            content=db_document.content,
            author_id=db_document.author_id,
            visibility=db_document.visibility,
            shared_with=[
                Share(user_id=share.user_id, permission=share.permission)
                for share in db_document.shares
            ],
            current_version=db_document.current_version,
            last_version_created_at=db_document.last_version_created_at,
            revision=db_document.revision,
            created_at=db_document.created_at,
            updated_at=db_document.updated_at
        )


class DocumentVersionRepository:
    """Репозиторий для работы с версиями документов"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, version: "DocumentVersion") -> "DocumentVersion":
        """Создание новой версии документа"""
        db_version = DocumentVersionModel(
            uuid=version.uuid,
            document_id=version.document_id,
            version_number=version.version_number,
            title=version.title,
            content=version.content,
            visibility=version.visibility,
            changed_by=version.changed_by,
            change_type=version.change_type,
            change_summary=version.change_summary,
            word_count=version.word_count,
            character_count=version.character_count,
            created_at=version.created_at
        )

        self.session.add(db_version)
        try:
            await self.session.flush()
        except IntegrityError:
            raise ConflictError(
                f"Version {version.version_number} already exists",
                {"document_id": str(version.document_id), "version": version.version_number}
            )
        await self.session.refresh(db_version)
        return self._to_domain(db_version)

    async def get_by_document(
        self,
        document_id: uuid.UUID,
        limit: int = 50,
        offset: int = 0
    ) -> List["DocumentVersion"]:
        """Получение версий документа, начиная с самой новой"""
        result = await self.session.execute(
            select(DocumentVersionModel)
            .where(DocumentVersionModel.document_id == document_id)
            .order_by(DocumentVersionModel.version_number.desc())
            .offset(offset)
            .limit(limit)
        )
        db_versions = result.scalars().all()
        return [self._to_domain(version) for version in db_versions]

    async def get_version_by_number(
        self,
        document_id: uuid.UUID,
        version_number: int
    ) -> Optional["DocumentVersion"]:
        """Получение версии по номеру"""
        result = await self.session.execute(
            select(DocumentVersionModel)
            .where(
                DocumentVersionModel.document_id == document_id,
                DocumentVersionModel.version_number == version_number
            )
        )
        db_version = result.scalar_one_or_none()
        return self._to_domain(db_version) if db_version else None

    async def get_versions_by_numbers(
        self,
        document_id: uuid.UUID,
        version_numbers: List[int]
    ) -> dict:
        """Загрузка нескольких версий одним запросом: {номер: версия}"""
        result = await self.session.execute(
            select(DocumentVersionModel)
            .where(
                DocumentVersionModel.document_id == document_id,
                DocumentVersionModel.version_number.in_(version_numbers)
            )
        )
        return {
            db_version.version_number: self._to_domain(db_version)
            for db_version in result.scalars().all()
        }

    def _to_domain(self, db_version: DocumentVersionModel) -> "DocumentVersion":
        """Преобразование модели БД в доменную сущность"""
        from app.domains.documents.entities import DocumentVersion

        return DocumentVersion(
            uuid=db_version.uuid,
            document_id=db_version.document_id,
            version_number=db_version.version_number,
            title=db_version.title,
            content=db_version.content,
            visibility=db_version.visibility,
            changed_by=db_version.changed_by,
            change_type=db_version.change_type,
            change_summary=db_version.change_summary,
            word_count=db_version.word_count,
            character_count=db_version.character_count,
            created_at=db_version.created_at
        )
