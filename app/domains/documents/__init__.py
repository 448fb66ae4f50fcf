from app.domains.documents.entities import (
    Document, DocumentVersion, DocumentSnapshot, Share, Visibility, Permission, ChangeType
)
from app.domains.documents.schemas import (
    DocumentBase, DocumentCreate, DocumentUpdate, DocumentResponse, ShareEntry,
    DocumentShareRequest, AckResponse, DocumentVersionResponse,
    DocumentVersionListResponse, FieldChangeResponse, DocumentDiffResponse,
    DocumentRestoreResponse
)

__all__ = [
    "Document", "DocumentVersion", "DocumentSnapshot", "Share",
    "Visibility", "Permission", "ChangeType",
    "DocumentBase", "DocumentCreate", "DocumentUpdate", "DocumentResponse", "ShareEntry",
    "DocumentShareRequest", "AckResponse", "DocumentVersionResponse",
    "DocumentVersionListResponse", "FieldChangeResponse", "DocumentDiffResponse",
    "DocumentRestoreResponse"
]
