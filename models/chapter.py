"""Outline and chapter data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from models.enums import ChapterStatus


@dataclass
class ChapterOutline:
    """One chapter entry of a parsed outline."""
    id: str = ""
    title: str = ""
    summary: str = ""
    order: int = 0  # 1-based, dense


@dataclass
class Outline:
    """Title/description/chapter-summary skeleton produced before prose."""
    title: str = ""
    description: str = ""
    chapters: list[ChapterOutline] = field(default_factory=list)


@dataclass(frozen=True)
class Chapter:
    """A fully generated chapter. Immutable once produced."""
    id: str
    title: str
    content: str
    order: int
    word_count: int = 0
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_outline(cls, outline: ChapterOutline, content: str) -> "Chapter":
        return cls(
            id=outline.id,
            title=outline.title,
            content=content,
            order=outline.order,
            word_count=len(content),
        )


@dataclass
class ChapterGenerationStatus:
    """Transient per-chapter progress record, for reporting only."""
    chapter_index: int
    status: ChapterStatus = ChapterStatus.PENDING
    retry_count: int = 0
    error: Optional[str] = None
