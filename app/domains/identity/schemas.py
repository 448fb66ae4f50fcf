from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
from typing import List, Optional
from datetime import datetime
import uuid


class UserCreate(BaseModel):
    """Схема для создания пользователя"""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip()


class UserResponse(BaseModel):
    """Краткие данные пользователя (для упоминаний и списков доступа)"""
    uuid: uuid.UUID
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class UserSearchResponse(BaseModel):
    """Результаты поиска пользователей"""
    users: List[UserResponse]
    query: str


class NotificationResponse(BaseModel):
    """Уведомление об упоминании"""
    uuid: uuid.UUID
    document_id: uuid.UUID
    document_title: Optional[str] = None
    mentioned_by: uuid.UUID
    mentioned_by_name: str = "A user"
    read: bool
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator('mentioned_by_name', mode='before')
    @classmethod
    def default_mentioned_by_name(cls, v):
        return v or "A user"
