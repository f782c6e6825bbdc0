"""Tests for workflow stages, routing conditions and callbacks."""

import io
import logging

import pytest

from config.exceptions import WorkflowStateError
from models.chapter import ChapterGenerationStatus
from models.enums import ChapterStatus, PipelineStage


class TestStageTransitions:
    def test_happy_path_is_allowed(self):
        from workflow.state import check_transition
        path = [
            PipelineStage.IDLE,
            PipelineStage.OUTLINING,
            PipelineStage.OUTLINE_READY,
            PipelineStage.GENERATING_CHAPTERS,
            PipelineStage.GENERATING_COVER,
            PipelineStage.COMPLETE,
        ]
        for current, target in zip(path, path[1:]):
            check_transition(current, target)

    def test_supplied_outline_skips_outlining(self):
        from workflow.state import check_transition
        check_transition(PipelineStage.IDLE, PipelineStage.GENERATING_CHAPTERS)

    def test_illegal_transition_raises(self):
        from workflow.state import check_transition
        with pytest.raises(WorkflowStateError):
            check_transition(PipelineStage.IDLE, PipelineStage.COMPLETE)

    def test_cannot_restart_while_active(self):
        from workflow.state import check_transition
        with pytest.raises(WorkflowStateError):
            check_transition(PipelineStage.GENERATING_CHAPTERS, PipelineStage.OUTLINING)

    def test_error_only_from_outlining_or_chapters(self):
        from workflow.state import STAGE_TRANSITIONS
        sources = {s for s, targets in STAGE_TRANSITIONS.items() if PipelineStage.ERROR in targets}
        assert sources == {PipelineStage.OUTLINING, PipelineStage.GENERATING_CHAPTERS}

    @pytest.mark.parametrize("stage", [
        PipelineStage.COMPLETE, PipelineStage.ERROR, PipelineStage.CANCELLED, PipelineStage.OUTLINE_READY,
    ])
    def test_settled_stages_can_start_again(self, stage):
        from workflow.state import check_transition
        check_transition(stage, PipelineStage.OUTLINING)
        check_transition(stage, PipelineStage.GENERATING_CHAPTERS)

    def test_every_stage_has_an_entry(self):
        from workflow.state import STAGE_TRANSITIONS
        assert set(STAGE_TRANSITIONS) == set(PipelineStage)

    def test_is_active(self):
        from workflow.state import is_active
        assert is_active(PipelineStage.GENERATING_COVER)
        assert not is_active(PipelineStage.OUTLINE_READY)
        assert not is_active(PipelineStage.IDLE)


class TestConditions:
    def test_route_after_init_plans_without_outline(self):
        from workflow.conditions import route_after_init
        assert route_after_init({"outline": None}) == "plan_outline"
        assert route_after_init({}) == "plan_outline"

    def test_route_after_init_skips_planning(self, sample_outline):
        from workflow.conditions import route_after_init
        assert route_after_init({"outline": sample_outline}) == "write_chapter"

    def test_route_after_outline_only(self):
        from workflow.conditions import route_after_outline
        assert route_after_outline({"mode": "outline_only"}) == "__end__"
        assert route_after_outline({"mode": "full"}) == "write_chapter"

    def test_route_after_advance(self, sample_outline):
        from workflow.conditions import route_after_advance
        assert route_after_advance({"outline": sample_outline, "current_index": 3}) == "write_chapter"
        assert route_after_advance({"outline": sample_outline, "current_index": 4}) == "generate_cover"


class TestGraph:
    def test_build_graph_has_all_nodes(self):
        from workflow.graph import build_graph
        app = build_graph()
        nodes = set(app.get_graph().nodes)
        for name in ("initialize", "plan_outline", "write_chapter", "advance_chapter",
                     "generate_cover", "finalize"):
            assert name in nodes

    def test_recursion_limit_grows_with_chapters(self):
        from workflow.graph import recursion_limit_for
        assert recursion_limit_for(0) == 50
        assert recursion_limit_for(40) > 2 * 40


class TestLoggingCallback:
    def test_implements_protocol(self):
        from workflow.callbacks import GenerationCallback, LoggingCallback
        assert isinstance(LoggingCallback(), GenerationCallback)

    def test_retry_logged_as_warning(self, caplog):
        from workflow.callbacks import LoggingCallback
        cb = LoggingCallback()
        with caplog.at_level(logging.WARNING, logger="workflow.callbacks"):
            cb.on_chapter_status(ChapterGenerationStatus(1, ChapterStatus.RETRYING, retry_count=2))
        assert "Retrying chapter 2" in caplog.text

    def test_failure_logged_as_error(self, caplog):
        from workflow.callbacks import LoggingCallback
        cb = LoggingCallback()
        with caplog.at_level(logging.ERROR, logger="workflow.callbacks"):
            cb.on_chapter_status(
                ChapterGenerationStatus(0, ChapterStatus.FAILED, retry_count=5, error="HTTP 500"),
            )
        assert "HTTP 500" in caplog.text


class TestRichProgressCallback:
    def test_events_before_start_are_safe(self, sample_chapters):
        from workflow.callbacks import RichProgressCallback
        cb = RichProgressCallback()
        cb.on_stage_change(PipelineStage.OUTLINING)
        cb.on_outline_update("部分大纲")
        cb.on_chapter_update(0, "部分正文")
        cb.on_chapter_complete(sample_chapters[0], 4)
        cb.on_cover_complete(None)
        cb.on_error(PipelineStage.GENERATING_CHAPTERS, RuntimeError("boom"))

    def test_progress_updates(self, sample_chapters):
        from rich.console import Console
        from workflow.callbacks import RichProgressCallback
        console = Console(file=io.StringIO(), force_terminal=False)
        cb = RichProgressCallback(console=console, total_chapters=4)
        cb.start()
        try:
            cb.on_stage_change(PipelineStage.GENERATING_CHAPTERS)
            cb.on_chapter_status(ChapterGenerationStatus(0, ChapterStatus.RETRYING, retry_count=1))
            cb.on_chapter_complete(sample_chapters[0], 4)
            task = cb._progress.tasks[0]
            assert task.completed == 1
            assert task.total == 4
        finally:
            cb.stop()
        assert cb._progress is None
