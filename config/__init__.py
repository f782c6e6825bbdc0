"""Configuration package: settings, logging, and exceptions."""

from config.exceptions import (
    NovelGenError,
    LLMError,
    StreamError,
    UpstreamError,
    UpstreamTransportError,
    UpstreamStatusError,
    MalformedResponseError,
    TaskFailedError,
    TaskTimeoutError,
    WorkflowError,
    WorkflowStateError,
    OutlineGenerationError,
    ChapterGenerationError,
    GenerationCancelledError,
    ValidationError,
    InvalidConfigError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "NovelGenError",
    "LLMError",
    "StreamError",
    "UpstreamError",
    "UpstreamTransportError",
    "UpstreamStatusError",
    "MalformedResponseError",
    "TaskFailedError",
    "TaskTimeoutError",
    "WorkflowError",
    "WorkflowStateError",
    "OutlineGenerationError",
    "ChapterGenerationError",
    "GenerationCancelledError",
    "ValidationError",
    "InvalidConfigError",
]
