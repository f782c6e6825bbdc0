"""Upstream generation task model and status normalization.

Two external vocabularies exist: the image API reports
INIT/WAIT/RUNNING/FAILED/SUCCESS, the speech API reports
Running/Success/Failure. Both are mapped onto ``TaskState`` as soon as a
response is received.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from models.enums import TaskState

logger = logging.getLogger(__name__)

_IMAGE_STATES = {
    "INIT": TaskState.PENDING,
    "WAIT": TaskState.PENDING,
    "RUNNING": TaskState.RUNNING,
    "SUCCESS": TaskState.SUCCEEDED,
    "FAILED": TaskState.FAILED,
}

_SPEECH_STATES = {
    "Running": TaskState.RUNNING,
    "Success": TaskState.SUCCEEDED,
    "Failure": TaskState.FAILED,
}


def _normalize(raw: Optional[str], table: dict[str, TaskState], source: str) -> TaskState:
    state = table.get(raw or "")
    if state is None:
        # Unknown values keep the poller going
        logger.warning("Unknown %s task status %r, treating as running", source, raw)
        return TaskState.RUNNING
    return state


def normalize_image_status(raw: Optional[str]) -> TaskState:
    return _normalize(raw, _IMAGE_STATES, "image")


def normalize_speech_status(raw: Optional[str]) -> TaskState:
    return _normalize(raw, _SPEECH_STATES, "speech")


@dataclass
class GenerationTask:
    """Snapshot of an upstream image/speech task."""
    task_id: str
    state: TaskState = TaskState.PENDING
    progress: float = 0.0
    result_url: Optional[str] = None
    error: Optional[str] = None
