"""LangGraph workflow state and pipeline stage transitions."""

from typing import Optional, TypedDict

from config.exceptions import WorkflowStateError
from models.chapter import Chapter, Outline
from models.enums import PipelineStage
from models.novel import GenerationRequest, Novel


class NovelWorkflowState(TypedDict, total=False):
    """State shared by all graph nodes.

    Fields are grouped logically:
    - Input: request, mode
    - Planning: outline
    - Chapter tracking: current_index, chapters
    - Result: cover_image_url, novel
    """

    # Input
    request: GenerationRequest
    mode: str  # "full" or "outline_only"

    # Planning
    outline: Optional[Outline]

    # Chapter tracking
    current_index: int
    chapters: list[Chapter]

    # Result
    cover_image_url: Optional[str]
    novel: Novel


_ACTIVE_STAGES = frozenset({
    PipelineStage.OUTLINING,
    PipelineStage.GENERATING_CHAPTERS,
    PipelineStage.GENERATING_COVER,
})

_RESTARTABLE = {PipelineStage.OUTLINING, PipelineStage.GENERATING_CHAPTERS}

STAGE_TRANSITIONS: dict[PipelineStage, frozenset[PipelineStage]] = {
    PipelineStage.IDLE: frozenset(_RESTARTABLE),
    PipelineStage.OUTLINING: frozenset({
        PipelineStage.OUTLINE_READY,
        PipelineStage.ERROR,
        PipelineStage.CANCELLED,
    }),
    PipelineStage.OUTLINE_READY: frozenset(_RESTARTABLE),
    PipelineStage.GENERATING_CHAPTERS: frozenset({
        PipelineStage.GENERATING_COVER,
        PipelineStage.ERROR,
        PipelineStage.CANCELLED,
    }),
    # Cover failures are swallowed, so no ERROR edge here
    PipelineStage.GENERATING_COVER: frozenset({
        PipelineStage.COMPLETE,
        PipelineStage.CANCELLED,
    }),
    PipelineStage.COMPLETE: frozenset(_RESTARTABLE),
    PipelineStage.ERROR: frozenset(_RESTARTABLE),
    PipelineStage.CANCELLED: frozenset(_RESTARTABLE),
}


def is_active(stage: PipelineStage) -> bool:
    return stage in _ACTIVE_STAGES


def check_transition(current: PipelineStage, target: PipelineStage) -> None:
    """Raise WorkflowStateError unless current -> target is allowed."""
    if target not in STAGE_TRANSITIONS[current]:
        raise WorkflowStateError(
            f"Illegal stage transition {current.value} -> {target.value}",
            {"from": current.value, "to": target.value},
        )
