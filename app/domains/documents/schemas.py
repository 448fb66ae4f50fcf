from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, List
import uuid
from datetime import datetime

from app.domains.documents.entities import ChangeType, Permission, Visibility


class DocumentBase(BaseModel):
    """Базовая схема документа"""
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(default="", max_length=1000000)  # 1MB max content
    visibility: Visibility = Visibility.PRIVATE

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError('Title cannot be empty')
        return v.strip()


class DocumentCreate(DocumentBase):
    """Схема для создания документа"""
    pass


class DocumentUpdate(BaseModel):
    """Схема для обновления документа (все поля необязательны)"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, max_length=1000000)
    visibility: Optional[Visibility] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Title cannot be empty')
        return v.strip() if v else v


class ShareEntry(BaseModel):
    """Запись списка доступа"""
    user_id: uuid.UUID
    permission: Permission

    model_config = ConfigDict(from_attributes=True)


class DocumentResponse(DocumentBase):
    """Схема для ответа с данными документа"""
    uuid: uuid.UUID
    author_id: uuid.UUID
    shared_with: List[ShareEntry]
    current_version: int
    last_version_created_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentShareRequest(BaseModel):
    """Схема для запроса на предоставление доступа к документу"""
    user_id: uuid.UUID
    # Проверяется в сервисе, чтобы ошибка была invalid_argument
    permission: str = Permission.VIEW.value


class AckResponse(BaseModel):
    """Подтверждение операции"""
    message: str


class DocumentVersionResponse(BaseModel):
    """Схема для ответа с данными версии документа"""
    uuid: uuid.UUID
    document_id: uuid.UUID
    version_number: int
    title: str
    content: str
    visibility: Visibility
    changed_by: uuid.UUID
    change_type: ChangeType
    change_summary: str
    word_count: int
    character_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentVersionListResponse(BaseModel):
    """Схема для истории версий"""
    document_id: uuid.UUID
    versions: List[DocumentVersionResponse]
    limit: int


class FieldChangeResponse(BaseModel):
    old: str
    new: str
    changed: bool


class DocumentDiffResponse(BaseModel):
    """Схема для ответа с разницей между версиями"""
    document_id: uuid.UUID
    title: FieldChangeResponse
    content: FieldChangeResponse
    visibility: FieldChangeResponse
    word_count_diff: int
    character_count_diff: int
    version1: DocumentVersionResponse
    version2: DocumentVersionResponse


class DocumentRestoreResponse(BaseModel):
    """Схема для ответа на восстановление версии"""
    restored_version: DocumentVersionResponse
    document: DocumentResponse
