from app.domains.identity.entities import User, Notification
from app.domains.identity.schemas import (
    UserCreate, UserResponse, UserSearchResponse, NotificationResponse
)

__all__ = [
    "User", "Notification",
    "UserCreate", "UserResponse", "UserSearchResponse", "NotificationResponse"
]
