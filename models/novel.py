"""Generation request and novel aggregate models."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from models.chapter import Chapter
from models.enums import LengthClass


@dataclass(frozen=True)
class GenerationRequest:
    """Caller input for a generation run. Never mutated."""
    genre: str
    style: str = ""
    plot: str = ""
    length: LengthClass = LengthClass.SHORT
    characters: Optional[str] = None
    setting: Optional[str] = None


def _new_novel_id() -> str:
    return f"novel-{uuid.uuid4().hex[:12]}"


@dataclass
class Novel:
    """Complete novel returned by the pipeline."""
    title: str
    description: str
    genre: str
    style: str
    chapters: list[Chapter] = field(default_factory=list)
    cover_image_url: Optional[str] = None
    id: str = field(default_factory=_new_novel_id)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def total_words(self) -> int:
        return sum(c.word_count for c in self.chapters)

    def to_dict(self) -> dict:
        """JSON-ready representation (datetimes as ISO strings)."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "genre": self.genre,
            "style": self.style,
            "cover_image_url": self.cover_image_url,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "chapters": [
                {
                    "id": c.id,
                    "title": c.title,
                    "order": c.order,
                    "word_count": c.word_count,
                    "content": c.content,
                    "created_at": c.created_at.isoformat(),
                }
                for c in self.chapters
            ],
        }
