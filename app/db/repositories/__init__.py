from app.db.repositories.user_repository import UserRepository
from app.db.repositories.document_repository import DocumentRepository, DocumentVersionRepository

__all__ = [
    "UserRepository",
    "DocumentRepository",
    "DocumentVersionRepository"
]
