import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Set

from app.domains.documents.entities import Document, Permission, Share

logger = logging.getLogger(__name__)

# data-mention="<user id>" или data-mention='<user id>'
MENTION_PATTERN = re.compile(r"""data-mention\s*=\s*(?:"([^"]*)"|'([^']*)')""")


def extract_mentioned_ids(content: Optional[str]) -> Set[str]:
    """Извлечение уникальных идентификаторов упомянутых пользователей из HTML"""
    if not content:
        return set()

    ids = set()
    for match in MENTION_PATTERN.finditer(content):
        user_id = (match.group(1) or match.group(2) or "").strip()
        if user_id:
            ids.add(user_id)
    return ids


def has_mentions(content: Optional[str]) -> bool:
    return bool(extract_mentioned_ids(content))


@dataclass(frozen=True)
class NotificationIntent:
    """Уведомление, которое нужно доставить после сохранения документа"""
    recipient_id: uuid.UUID
    document_id: uuid.UUID
    mentioned_by: uuid.UUID
    timestamp: datetime


@dataclass
class MentionOutcome:
    """Результат сверки упоминаний: новые доступы и уведомления"""
    newly_mentioned: Set[str] = field(default_factory=set)
    new_shares: List[Share] = field(default_factory=list)
    notifications: List[NotificationIntent] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.new_shares and not self.notifications


UserExists = Callable[[uuid.UUID], Awaitable[bool]]


class MentionReconciler:
    """Сверка старых и новых упоминаний в документе.

    Документ не изменяется: вызывающий применяет ``new_shares`` перед
    сохранением и доставляет ``notifications`` после него.
    """

    def __init__(self, user_exists: UserExists):
        self.user_exists = user_exists

    async def reconcile(
        self,
        document: Document,
        new_content: Optional[str],
        old_content: Optional[str],
        actor_id: uuid.UUID
    ) -> MentionOutcome:
        newly_mentioned = extract_mentioned_ids(new_content) - extract_mentioned_ids(old_content)
        outcome = MentionOutcome(newly_mentioned=newly_mentioned)

        if not newly_mentioned:
            return outcome

        logger.info(f"Found {len(newly_mentioned)} new mentions in document {document.uuid}")

        shared = {share.user_id for share in document.shared_with}
        processed: Set[uuid.UUID] = set()
        now = datetime.now(timezone.utc)

        for raw_id in sorted(newly_mentioned):
            try:
                recipient_id = uuid.UUID(raw_id)
            except ValueError:
                logger.warning(f"Skipping malformed mention '{raw_id}' in document {document.uuid}")
                outcome.skipped.append(raw_id)
                continue

            # Разное написание одного UUID в одной правке
            if recipient_id in processed:
                continue
            processed.add(recipient_id)

            # Упоминание самого себя не дает доступа и не уведомляет
            if recipient_id == actor_id:
                outcome.skipped.append(raw_id)
                continue

            try:
                exists = await self.user_exists(recipient_id)
            except Exception:
                logger.exception(f"Error processing mention for user {recipient_id}")
                outcome.skipped.append(raw_id)
                continue

            if not exists:
                logger.warning(f"Mentioned user {recipient_id} does not exist, skipping")
                outcome.skipped.append(raw_id)
                continue

            if recipient_id not in shared and not document.is_author(recipient_id):
                outcome.new_shares.append(Share(user_id=recipient_id, permission=Permission.VIEW))
                shared.add(recipient_id)
                logger.info(f"Auto-sharing document {document.uuid} with user {recipient_id}")

            outcome.notifications.append(
                NotificationIntent(
                    recipient_id=recipient_id,
                    document_id=document.uuid,
                    mentioned_by=actor_id,
                    timestamp=now
                )
            )

        return outcome
