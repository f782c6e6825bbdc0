"""Workflow package: LangGraph graph, stages, callbacks, pipeline and audio."""

from workflow.graph import build_graph, WorkflowContext
from workflow.state import NovelWorkflowState, STAGE_TRANSITIONS, check_transition, is_active
from workflow.conditions import (
    route_after_init,
    route_after_outline,
    route_after_advance,
)
from workflow.callbacks import GenerationCallback, LoggingCallback, RichProgressCallback
from workflow.pipeline import NovelPipeline
from workflow.audio import ChapterAudioService

__all__ = [
    "build_graph",
    "WorkflowContext",
    "NovelWorkflowState",
    "STAGE_TRANSITIONS",
    "check_transition",
    "is_active",
    "route_after_init",
    "route_after_outline",
    "route_after_advance",
    "GenerationCallback",
    "LoggingCallback",
    "RichProgressCallback",
    "NovelPipeline",
    "ChapterAudioService",
]
