from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid

from app.core.auth import get_current_user_id
from app.core.config import settings
from app.core.db import get_db
from app.domains.documents.entities import Document, DocumentVersion
from app.domains.documents.schemas import (
    DocumentCreate, DocumentUpdate, DocumentResponse, DocumentShareRequest, AckResponse,
    DocumentVersionResponse, DocumentVersionListResponse, FieldChangeResponse,
    DocumentDiffResponse, DocumentRestoreResponse
)
from app.domains.documents.services import DocumentService
from app.domains.documents.versioning import FieldChange

router = APIRouter(prefix="/documents", tags=["documents"])


def _document_response(document: Document) -> DocumentResponse:
    return DocumentResponse.model_validate(document)


def _version_response(version: DocumentVersion) -> DocumentVersionResponse:
    return DocumentVersionResponse.model_validate(version)


def _field_change(change: FieldChange) -> FieldChangeResponse:
    return FieldChangeResponse(
        old=getattr(change.old, "value", change.old),
        new=getattr(change.new, "value", change.new),
        changed=change.changed
    )


@router.post("/", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    document_data: DocumentCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Создание нового документа"""
    document_service = DocumentService(db)
    document = await document_service.create_document(document_data, user_id)
    return _document_response(document)


@router.get("/public/{document_uuid}", response_model=DocumentResponse)
async def get_public_document(
    document_uuid: uuid.UUID,
    db: AsyncSession = Depends(get_db)
):
    """Получение публичного документа без аутентификации"""
    document_service = DocumentService(db)
    document = await document_service.get_public_document(document_uuid)
    return _document_response(document)


@router.get("/{document_uuid}", response_model=DocumentResponse)
async def get_document(
    document_uuid: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Получение документа по UUID"""
    document_service = DocumentService(db)
    document = await document_service.get_document(document_uuid, user_id)
    return _document_response(document)


@router.put("/{document_uuid}", response_model=DocumentResponse)
async def update_document(
    document_uuid: uuid.UUID,
    update_data: DocumentUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Обновление документа"""
    document_service = DocumentService(db)
    document = await document_service.update_document(document_uuid, update_data, user_id)
    return _document_response(document)


@router.delete("/{document_uuid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_uuid: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Удаление документа"""
    document_service = DocumentService(db)
    await document_service.delete_document(document_uuid, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{document_uuid}/share", response_model=AckResponse)
async def share_document(
    document_uuid: uuid.UUID,
    share_request: DocumentShareRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Предоставление доступа к документу"""
    document_service = DocumentService(db)
    await document_service.share_document(
        document_uuid,
        user_id,
        share_request.user_id,
        share_request.permission
    )
    return AckResponse(message="Document shared successfully")


@router.delete("/{document_uuid}/share/{target_user_uuid}", response_model=AckResponse)
async def unshare_document(
    document_uuid: uuid.UUID,
    target_user_uuid: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Удаление доступа пользователя к документу"""
    document_service = DocumentService(db)
    await document_service.unshare_document(document_uuid, user_id, target_user_uuid)
    return AckResponse(message="User removed from document")


# Версии документов
@router.get("/{document_uuid}/versions", response_model=DocumentVersionListResponse)
async def get_document_versions(
    document_uuid: uuid.UUID,
    limit: Optional[int] = Query(None, ge=1, le=200),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Получение истории версий, самые новые первыми"""
    document_service = DocumentService(db)
    limit = limit or settings.version_history_limit
    versions = await document_service.get_version_history(document_uuid, user_id, limit)

    return DocumentVersionListResponse(
        document_id=document_uuid,
        versions=[_version_response(version) for version in versions],
        limit=limit
    )


@router.get("/{document_uuid}/versions/{version_number}", response_model=DocumentVersionResponse)
async def get_document_version(
    document_uuid: uuid.UUID,
    version_number: int,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Получение конкретной версии документа"""
    document_service = DocumentService(db)
    version = await document_service.get_version(document_uuid, version_number, user_id)
    return _version_response(version)


@router.get("/{document_uuid}/compare/{version1}/{version2}", response_model=DocumentDiffResponse)
async def compare_document_versions(
    document_uuid: uuid.UUID,
    version1: int,
    version2: int,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Сравнение двух версий документа"""
    document_service = DocumentService(db)
    diff = await document_service.compare_versions(document_uuid, version1, version2, user_id)

    return DocumentDiffResponse(
        document_id=document_uuid,
        title=_field_change(diff.title),
        content=_field_change(diff.content),
        visibility=_field_change(diff.visibility),
        word_count_diff=diff.word_count_diff,
        character_count_diff=diff.character_count_diff,
        version1=_version_response(diff.version1),
        version2=_version_response(diff.version2)
    )


@router.post("/{document_uuid}/restore/{version_number}", response_model=DocumentRestoreResponse)
async def restore_document_version(
    document_uuid: uuid.UUID,
    version_number: int,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Восстановление документа из версии"""
    document_service = DocumentService(db)
    restored_version, document = await document_service.restore_version(
        document_uuid, version_number, user_id
    )

    return DocumentRestoreResponse(
        restored_version=_version_response(restored_version),
        document=_document_response(document)
    )
