from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UUID, Index
from sqlalchemy.orm import relationship

from app.db.base import BaseModel, utcnow


class User(BaseModel):
    __tablename__ = "users"

    name = Column(String(100), nullable=False, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)

    # Relationships
    authored_documents = relationship("Document", back_populates="author", cascade="all, delete-orphan")
    notifications = relationship(
        "Notification",
        back_populates="user",
        foreign_keys="Notification.user_id",
        cascade="all, delete-orphan",
    )


class Notification(BaseModel):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_timestamp", "user_id", "timestamp"),
    )

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False)
    document_id = Column(UUID(as_uuid=True), ForeignKey("documents.uuid", ondelete="CASCADE"), nullable=False)
    mentioned_by = Column(UUID(as_uuid=True), ForeignKey("users.uuid"), nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="notifications", foreign_keys=[user_id])
    mentioner = relationship("User", foreign_keys=[mentioned_by])
