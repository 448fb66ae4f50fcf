from sqlalchemy import (
    Column, String, Text, Integer, ForeignKey, UUID, DateTime, Enum,
    UniqueConstraint, Index
)
from sqlalchemy.orm import relationship

from app.db.base import BaseModel, utcnow
from app.domains.documents.entities import ChangeType, Permission, Visibility


def _enum(enum_cls, name: str) -> Enum:
    # Храним значения ('public', 'view', ...), а не имена членов
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )


class Document(BaseModel):
    __tablename__ = "documents"

    title = Column(String(255), nullable=False)
    content = Column(Text, default="", nullable=False)
    author_id = Column(UUID(as_uuid=True), ForeignKey("users.uuid"), nullable=False, index=True)
    visibility = Column(_enum(Visibility, "document_visibility"), default=Visibility.PRIVATE, nullable=False)
    current_version = Column(Integer, default=0, nullable=False)
    last_version_created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    # Счетчик для проверяемой записи (optimistic locking)
    revision = Column(Integer, default=0, nullable=False)

    # Relationships
    author = relationship("User", back_populates="authored_documents")
    shares = relationship("DocumentShare", back_populates="document", cascade="all, delete-orphan")
    versions = relationship("DocumentVersion", back_populates="document", cascade="all, delete-orphan")


class DocumentShare(BaseModel):
    __tablename__ = "document_shares"
    __table_args__ = (
        UniqueConstraint("document_id", "user_id", name="uq_document_shares_document_user"),
    )

    document_id = Column(UUID(as_uuid=True), ForeignKey("documents.uuid", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False, index=True)
    permission = Column(_enum(Permission, "share_permission"), default=Permission.VIEW, nullable=False)

    # Relationships
    document = relationship("Document", back_populates="shares")
    user = relationship("User")


class DocumentVersion(BaseModel):
    __tablename__ = "document_versions"
    __table_args__ = (
        UniqueConstraint("document_id", "version_number", name="uq_document_versions_document_version"),
        Index("ix_document_versions_document_created", "document_id", "created_at"),
    )

    document_id = Column(UUID(as_uuid=True), ForeignKey("documents.uuid", ondelete="CASCADE"), nullable=False)
    version_number = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, default="", nullable=False)
    visibility = Column(_enum(Visibility, "version_visibility"), nullable=False)
    changed_by = Column(UUID(as_uuid=True), ForeignKey("users.uuid"), nullable=False)
    change_type = Column(_enum(ChangeType, "version_change_type"), default=ChangeType.UPDATED, nullable=False)
    change_summary = Column(Text, default="", nullable=False)
    word_count = Column(Integer, default=0, nullable=False)
    character_count = Column(Integer, default=0, nullable=False)

    # Relationships
    document = relationship("Document", back_populates="versions")
    editor = relationship("User")
