"""NovelPipeline: stage-tracked entry point for outline, chapter and cover generation."""

import asyncio
import logging
from typing import Optional

from agents.chapter_agent import ChapterAgent
from agents.outline_agent import OutlineAgent
from config.exceptions import (
    GenerationCancelledError,
    ValidationError,
    WorkflowStateError,
)
from config.settings import Settings
from models.chapter import Chapter, Outline
from models.enums import PipelineStage
from models.novel import GenerationRequest, Novel
from tools.cancellation import CancelToken, run_cancellable
from tools.chat_stream import StreamingChatClient
from tools.cover_client import CoverClient

from workflow.callbacks import GenerationCallback, LoggingCallback
from workflow.graph import WorkflowContext, build_graph, recursion_limit_for
from workflow.state import NovelWorkflowState, STAGE_TRANSITIONS, check_transition, is_active

logger = logging.getLogger(__name__)


class NovelPipeline:
    """Drives a generation run through its stages.

    One instance handles one run at a time. Every operation arms a fresh
    CancelToken, so the instance can be reused after ``cancel()``.

    Usage:
        pipeline = NovelPipeline(settings=settings, callback=RichProgressCallback())
        novel = await pipeline.run(request)
    """

    def __init__(
        self,
        outline_agent: Optional[OutlineAgent] = None,
        chapter_agent: Optional[ChapterAgent] = None,
        cover_client: Optional[CoverClient] = None,
        settings: Optional[Settings] = None,
        callback: Optional[GenerationCallback] = None,
    ):
        self.settings = settings or Settings()
        self.callback = callback or LoggingCallback()

        self._owned = []
        if outline_agent is None or chapter_agent is None:
            chat = StreamingChatClient(self.settings)
            self._owned.append(chat)
            outline_agent = outline_agent or OutlineAgent(chat, self.settings)
            chapter_agent = chapter_agent or ChapterAgent(chat, self.settings)
        if cover_client is None:
            cover_client = CoverClient(self.settings)
            self._owned.append(cover_client)

        self.outline_agent = outline_agent
        self.chapter_agent = chapter_agent
        self.cover_client = cover_client

        self._graph = build_graph()
        self._stage = PipelineStage.IDLE
        self._running = False
        self._cancel_token = CancelToken()

    @property
    def stage(self) -> PipelineStage:
        return self._stage

    async def aclose(self) -> None:
        """Close HTTP clients created by this pipeline."""
        for client in self._owned:
            await client.aclose()

    async def __aenter__(self) -> "NovelPipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def generate_outline(self, request: GenerationRequest) -> Outline:
        """Generate and parse an outline; ends in OUTLINE_READY.

        Raises:
            OutlineGenerationError: The stream failed or nothing parsed.
            GenerationCancelledError: ``cancel()`` was called.
            WorkflowStateError: Another run is in flight.
        """
        self._validate_request(request)
        final_state = await self._invoke(
            {"request": request, "mode": "outline_only"},
            recursion_limit_for(0),
        )
        return final_state["outline"]

    async def generate_chapters(self, request: GenerationRequest, outline: Outline) -> Novel:
        """Write every chapter of ``outline`` in order, then the cover.

        Raises:
            ChapterGenerationError: A chapter exhausted its retries; later
                chapters are not attempted.
            GenerationCancelledError: ``cancel()`` was called.
            WorkflowStateError: Another run is in flight.
        """
        self._validate_request(request)
        if not outline.chapters:
            raise ValidationError("Outline has no chapters to generate")
        final_state = await self._invoke(
            {"request": request, "mode": "full", "outline": outline},
            recursion_limit_for(len(outline.chapters)),
        )
        return final_state["novel"]

    async def run(self, request: GenerationRequest) -> Novel:
        """Outline, chapters and cover in one call."""
        self._validate_request(request)
        _, max_chapters = request.length.chapter_range
        # Models sometimes overshoot the requested chapter count
        final_state = await self._invoke(
            {"request": request, "mode": "full"},
            recursion_limit_for(max_chapters * 2),
        )
        return final_state["novel"]

    async def retry_chapter(
        self,
        chapter_index: int,
        request: GenerationRequest,
        outline: Outline,
        previous_chapters: list[Chapter],
    ) -> Chapter:
        """Regenerate one chapter on demand with a fresh retry budget.

        Refused while a run is active. Does not change the pipeline stage.
        """
        self._ensure_idle("retry_chapter")
        if not 0 <= chapter_index < len(outline.chapters):
            raise ValidationError(
                f"Chapter index {chapter_index} out of range",
                {"chapters": len(outline.chapters)},
            )
        if len(previous_chapters) < chapter_index:
            raise ValidationError(
                f"Chapter {chapter_index + 1} needs the {chapter_index} chapters before it",
                {"previous_chapters": len(previous_chapters)},
            )
        self._running = True
        self._cancel_token = CancelToken()

        try:
            chapter = await self.chapter_agent.regenerate(
                chapter_index,
                outline.chapters[chapter_index],
                request,
                outline,
                previous_chapters,
                on_text_update=self.callback.on_chapter_update,
                on_status_update=self.callback.on_chapter_status,
                cancel_token=self._cancel_token,
            )
        finally:
            self._running = False
        self.callback.on_chapter_complete(chapter, len(outline.chapters))
        return chapter

    async def retry_cover(self, title: str, genre: str, description: str = "") -> Optional[str]:
        """Regenerate the cover on demand. Returns None on failure."""
        self._ensure_idle("retry_cover")
        self._running = True
        self._cancel_token = CancelToken()

        self.callback.on_cover_start()
        cover_url = None
        try:
            cover_url = await run_cancellable(
                self.cover_client.generate_cover(title, genre, description),
                self._cancel_token,
            )
        except GenerationCancelledError:
            raise
        except Exception as e:
            logger.warning("Cover regeneration failed: %s", e)
        finally:
            self._running = False
        self.callback.on_cover_complete(cover_url)
        return cover_url

    def cancel(self) -> None:
        """Cancel the in-flight operation, if any."""
        logger.info("Cancellation requested (stage=%s)", self._stage.value)
        self._cancel_token.cancel()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate_request(self, request: GenerationRequest) -> None:
        if not request.genre or not request.genre.strip():
            raise ValidationError("Genre is required")

    def _ensure_idle(self, operation: str) -> None:
        if self._running or is_active(self._stage):
            raise WorkflowStateError(
                f"Cannot {operation} while a run is active",
                {"stage": self._stage.value},
            )

    def _set_stage(self, stage: PipelineStage) -> None:
        if stage is self._stage:
            return
        check_transition(self._stage, stage)
        logger.info("Pipeline stage: %s -> %s", self._stage.value, stage.value)
        self._stage = stage
        self.callback.on_stage_change(stage)

    def _end_with(self, stage: PipelineStage, error: Exception) -> None:
        """Settle a run that raised, so the instance never stays active."""
        failed_stage = self._stage
        if stage in STAGE_TRANSITIONS[failed_stage]:
            self._set_stage(stage)
        elif is_active(failed_stage):
            # Faults outside the cover client itself (callbacks, finalize) have no edge
            logger.warning(
                "Forcing stage %s -> %s after unexpected fault", failed_stage.value, stage.value,
            )
            self._stage = stage
            self.callback.on_stage_change(stage)
        self.callback.on_error(failed_stage, error)

    async def _invoke(self, initial_state: NovelWorkflowState, recursion_limit: int) -> dict:
        # Claim the first stage before any await so a concurrent call is refused
        self._ensure_idle("start a new run")
        if initial_state.get("outline") is not None:
            self._set_stage(PipelineStage.GENERATING_CHAPTERS)
        else:
            self._set_stage(PipelineStage.OUTLINING)
        self._running = True
        self._cancel_token = CancelToken()

        context = WorkflowContext(
            outline_agent=self.outline_agent,
            chapter_agent=self.chapter_agent,
            cover_client=self.cover_client,
            callback=self.callback,
            cancel_token=self._cancel_token,
            set_stage=self._set_stage,
        )
        config = {
            "recursion_limit": recursion_limit,
            "configurable": {"context": context},
        }

        try:
            return await self._graph.ainvoke(initial_state, config=config)
        except GenerationCancelledError as e:
            logger.info("Run cancelled during '%s'", self._stage.value)
            self._end_with(PipelineStage.CANCELLED, e)
            raise
        except asyncio.CancelledError:
            logger.info("Run task cancelled during '%s'", self._stage.value)
            self._end_with(PipelineStage.CANCELLED, GenerationCancelledError("Run task was cancelled"))
            raise
        except Exception as e:
            logger.error("Run failed during '%s': %s", self._stage.value, e)
            self._end_with(PipelineStage.ERROR, e)
            raise
        finally:
            self._running = False
