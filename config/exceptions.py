"""Custom exception hierarchy for the novel generation pipeline."""

from typing import Optional


class NovelGenError(Exception):
    """Base exception for all novel generation errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# ---- LLM Errors ----

class LLMError(NovelGenError):
    """Base exception for chat-completion errors."""


class StreamError(LLMError):
    """The chat stream failed at the transport, HTTP or framing level."""

    def __init__(self, message: str = "Chat stream failed", status_code: Optional[int] = None):
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.status_code = status_code


# ---- Upstream task API Errors ----

class UpstreamError(NovelGenError):
    """Base exception for image / speech task API errors."""


class UpstreamTransportError(UpstreamError):
    """Network-level or HTTP-level failure talking to a task API (transient)."""


class UpstreamStatusError(UpstreamError):
    """Upstream replied with a non-zero status field."""

    def __init__(self, status: int, message: str = ""):
        super().__init__(message or f"Upstream returned status {status}", {"status": status})
        self.status = status


class MalformedResponseError(UpstreamError):
    """Upstream reported success but the expected payload is missing."""

    def __init__(self, message: str = "Malformed upstream response", raw_response: str = ""):
        details = {"raw_response": raw_response[:200]} if raw_response else {}
        super().__init__(message, details)
        self.raw_response = raw_response


class TaskFailedError(UpstreamError):
    """Upstream task finished in an explicit failure state."""

    def __init__(self, task_id: str, message: str = ""):
        super().__init__(message or f"Task {task_id} failed", {"task_id": task_id})
        self.task_id = task_id


class TaskTimeoutError(UpstreamError):
    """Polling budget exhausted before the task finished."""

    def __init__(self, task_id: str, attempts: int):
        super().__init__(
            f"Task {task_id} did not finish after {attempts} polls",
            {"task_id": task_id, "attempts": attempts},
        )
        self.task_id = task_id
        self.attempts = attempts


# ---- Workflow Errors ----

class WorkflowError(NovelGenError):
    """Base exception for pipeline orchestration errors."""


class WorkflowStateError(WorkflowError):
    """Illegal stage transition or invalid pipeline input."""


class OutlineGenerationError(WorkflowError):
    """The outline stage could not produce a usable outline."""


class ChapterGenerationError(WorkflowError):
    """A chapter failed after exhausting its automatic retries."""

    def __init__(self, chapter_index: int, attempts: int, message: str = ""):
        super().__init__(
            message or f"Chapter {chapter_index + 1} failed after {attempts} attempts",
            {"chapter_index": chapter_index, "attempts": attempts},
        )
        self.chapter_index = chapter_index
        self.attempts = attempts


class GenerationCancelledError(WorkflowError):
    """The in-flight operation was cancelled by the caller."""

    def __init__(self, message: str = "Generation cancelled"):
        super().__init__(message)


# ---- Validation Errors ----

class ValidationError(NovelGenError):
    """Input validation failed."""


class InvalidConfigError(ValidationError):
    """Configuration value is invalid."""
