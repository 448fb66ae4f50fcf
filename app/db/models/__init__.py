from app.db.models.user import User, Notification
from app.db.models.document import Document, DocumentShare, DocumentVersion

__all__ = [
    "User",
    "Notification",
    "Document",
    "DocumentShare",
    "DocumentVersion"
]
