"""Чистые функции подсчета статистики и классификации изменений версий."""
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from app.domains.documents.entities import ChangeType, DocumentSnapshot, DocumentVersion

TAG_PATTERN = re.compile(r"<[^>]*>")

TRACKED_FIELDS = ("title", "content", "visibility")


def calculate_counts(content: Optional[str]) -> Tuple[int, int]:
    """Количество слов (без разметки) и символов (с разметкой)"""
    if not content:
        return 0, 0

    text = TAG_PATTERN.sub(" ", content)
    word_count = len(text.split())
    return word_count, len(content)


def changed_fields(old: DocumentSnapshot, new: DocumentSnapshot) -> List[str]:
    """Список отслеживаемых полей, которые отличаются"""
    return [field for field in TRACKED_FIELDS if getattr(old, field) != getattr(new, field)]


def determine_change_type(previous: Optional[DocumentSnapshot], new: DocumentSnapshot) -> ChangeType:
    if previous is None:
        return ChangeType.CREATED

    changes = changed_fields(previous, new)
    if len(changes) == 1:
        return ChangeType(f"{changes[0]}_changed")
    return ChangeType.UPDATED


def generate_change_summary(previous: DocumentSnapshot, new: DocumentSnapshot) -> str:
    """Человекочитаемое описание изменений между двумя снимками"""
    parts = []

    if previous.title != new.title:
        parts.append("Title changed")

    if previous.content != new.content:
        old_words, _ = calculate_counts(previous.content)
        new_words, _ = calculate_counts(new.content)
        if new_words > old_words:
            parts.append(f"Added {new_words - old_words} words")
        elif new_words < old_words:
            parts.append(f"Removed {old_words - new_words} words")
        else:
            parts.append("Content modified")

    if previous.visibility != new.visibility:
        parts.append(f"Visibility changed to {new.visibility.value}")

    return ", ".join(parts) or "Minor changes"


@dataclass
class FieldChange:
    old: Any
    new: Any
    changed: bool


@dataclass
class VersionDiff:
    """Структурное сравнение двух версий"""
    title: FieldChange
    content: FieldChange
    visibility: FieldChange
    word_count_diff: int
    character_count_diff: int
    version1: DocumentVersion
    version2: DocumentVersion


def diff_versions(v1: DocumentVersion, v2: DocumentVersion) -> VersionDiff:
    """Разница v2 относительно v1; порядок аргументов определяет знак"""
    return VersionDiff(
        title=FieldChange(old=v1.title, new=v2.title, changed=v1.title != v2.title),
        content=FieldChange(old=v1.content, new=v2.content, changed=v1.content != v2.content),
        visibility=FieldChange(
            old=v1.visibility, new=v2.visibility, changed=v1.visibility != v2.visibility
        ),
        word_count_diff=v2.word_count - v1.word_count,
        character_count_diff=v2.character_count - v1.character_count,
        version1=v1,
        version2=v2
    )
