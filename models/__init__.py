"""Models package: requests, outlines, chapters, tasks, and enums."""

from models.novel import GenerationRequest, Novel
from models.chapter import Chapter, ChapterOutline, ChapterGenerationStatus, Outline
from models.task import GenerationTask, normalize_image_status, normalize_speech_status
from models.enums import (
    LengthClass,
    ChapterStatus,
    TaskState,
    PipelineStage,
)

__all__ = [
    "GenerationRequest",
    "Novel",
    "Chapter",
    "ChapterOutline",
    "ChapterGenerationStatus",
    "Outline",
    "GenerationTask",
    "normalize_image_status",
    "normalize_speech_status",
    "LengthClass",
    "ChapterStatus",
    "TaskState",
    "PipelineStage",
]
