"""Enumerations for generation status tracking."""

from enum import Enum


class LengthClass(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"

    @property
    def chapter_range(self) -> tuple[int, int]:
        """Target (min, max) chapter count. A prompt hint, not enforced."""
        return _CHAPTER_RANGES[self]


_CHAPTER_RANGES = {
    LengthClass.SHORT: (3, 5),
    LengthClass.MEDIUM: (8, 12),
    LengthClass.LONG: (15, 20),
}


class ChapterStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    RETRYING = "retrying"
    SUCCESS = "success"
    FAILED = "failed"


class TaskState(str, Enum):
    """Internal task state; upstream vocabularies are mapped onto this."""
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.SUCCEEDED, TaskState.FAILED)


class PipelineStage(str, Enum):
    IDLE = "idle"
    OUTLINING = "outlining"
    OUTLINE_READY = "outline_ready"
    GENERATING_CHAPTERS = "generating_chapters"
    GENERATING_COVER = "generating_cover"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"
