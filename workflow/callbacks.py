"""Generation progress callbacks for monitoring and real-time reporting."""

import logging
from typing import Optional, Protocol, runtime_checkable

from models.chapter import Chapter, ChapterGenerationStatus
from models.enums import ChapterStatus, PipelineStage

logger = logging.getLogger(__name__)


@runtime_checkable
class GenerationCallback(Protocol):
    """Protocol for pipeline progress callbacks.

    Implement this protocol to hook into the generation lifecycle.
    """

    def on_stage_change(self, stage: PipelineStage) -> None:
        """Called whenever the pipeline enters a new stage."""
        ...

    def on_outline_update(self, text: str) -> None:
        """Called with the full outline text streamed so far."""
        ...

    def on_chapter_update(self, chapter_index: int, text: str) -> None:
        """Called with the full text of the chapter being generated."""
        ...

    def on_chapter_status(self, status: ChapterGenerationStatus) -> None:
        """Called on every chapter status transition (including retries)."""
        ...

    def on_chapter_complete(self, chapter: Chapter, total: int) -> None:
        """Called when a chapter has been generated successfully."""
        ...

    def on_cover_start(self) -> None:
        ...

    def on_cover_complete(self, cover_url: Optional[str]) -> None:
        """Called after the cover step; cover_url is None when it failed."""
        ...

    def on_error(self, stage: PipelineStage, error: Exception) -> None:
        """Called when the pipeline fails or is cancelled."""
        ...


class LoggingCallback:
    """Lightweight callback that logs progress to the standard logger."""

    def on_stage_change(self, stage: PipelineStage) -> None:
        logger.debug("→ stage: %s", stage.value)

    def on_outline_update(self, text: str) -> None:
        pass

    def on_chapter_update(self, chapter_index: int, text: str) -> None:
        pass

    def on_chapter_status(self, status: ChapterGenerationStatus) -> None:
        if status.status is ChapterStatus.RETRYING:
            logger.warning(
                "Retrying chapter %d, attempt %d", status.chapter_index + 1, status.retry_count,
            )
        elif status.status is ChapterStatus.FAILED:
            logger.error("Chapter %d failed: %s", status.chapter_index + 1, status.error)

    def on_chapter_complete(self, chapter: Chapter, total: int) -> None:
        logger.info("Chapter %d/%d complete (%d chars)", chapter.order, total, chapter.word_count)

    def on_cover_start(self) -> None:
        logger.info("Generating cover")

    def on_cover_complete(self, cover_url: Optional[str]) -> None:
        if cover_url:
            logger.info("Cover ready: %s", cover_url)
        else:
            logger.info("Continuing without cover")

    def on_error(self, stage: PipelineStage, error: Exception) -> None:
        logger.error("Pipeline error in '%s': %s", stage.value, error)


class RichProgressCallback(LoggingCallback):
    """Progress callback that renders a Rich live progress display in the terminal."""

    _STAGE_LABELS: dict[PipelineStage, str] = {
        PipelineStage.OUTLINING: "生成章节规划",
        PipelineStage.OUTLINE_READY: "章节规划完成",
        PipelineStage.GENERATING_CHAPTERS: "生成章节内容",
        PipelineStage.GENERATING_COVER: "生成封面",
        PipelineStage.COMPLETE: "完成",
        PipelineStage.ERROR: "出错",
        PipelineStage.CANCELLED: "已取消",
    }

    def __init__(self, console=None, total_chapters: int = 0):
        """
        Args:
            console: Rich Console instance. Creates one if not provided.
            total_chapters: Total chapters to write (for progress bar max).
        """
        self._console = console
        self._total = total_chapters
        self._progress = None
        self._chapter_task_id = None
        self._stage_task_id = None

    def start(self):
        """Start the progress display. Call before running the pipeline."""
        from rich.console import Console
        from rich.progress import Progress, SpinnerColumn, TextColumn, TaskProgressColumn

        console = self._console or Console()

        self._progress = Progress(
            SpinnerColumn("dots"),
            TextColumn("[progress.description]{task.description}"),
            TaskProgressColumn(),
            console=console,
        )
        self._progress.start()

        self._chapter_task_id = self._progress.add_task(
            "等待开始...",
            total=self._total if self._total > 0 else None,
        )
        self._stage_task_id = self._progress.add_task("[dim]初始化中...[/]", total=None)

    def stop(self):
        """Stop the progress display."""
        if self._progress:
            self._progress.stop()
            self._progress = None

    def on_stage_change(self, stage: PipelineStage) -> None:
        super().on_stage_change(stage)
        if not self._progress:
            return
        label = self._STAGE_LABELS.get(stage, stage.value)
        self._progress.update(self._stage_task_id, description=f"[dim]{label}[/]")

    def on_outline_update(self, text: str) -> None:
        if not self._progress:
            return
        self._progress.update(
            self._stage_task_id,
            description=f"[dim]生成章节规划 ({len(text):,}字)[/]",
        )

    def on_chapter_update(self, chapter_index: int, text: str) -> None:
        if not self._progress:
            return
        self._progress.update(
            self._stage_task_id,
            description=f"[dim]第{chapter_index + 1}章 生成中 ({len(text):,}字)[/]",
        )

    def on_chapter_status(self, status: ChapterGenerationStatus) -> None:
        super().on_chapter_status(status)
        if not self._progress:
            return
        ch = status.chapter_index + 1
        if status.status is ChapterStatus.RETRYING:
            from agents.chapter_agent import MAX_RETRY_COUNT
            self._progress.update(
                self._stage_task_id,
                description=f"[yellow]第{ch}章 重试中 {status.retry_count}/{MAX_RETRY_COUNT}[/]",
            )
        elif status.status is ChapterStatus.FAILED:
            self._progress.update(
                self._stage_task_id,
                description=f"[red]第{ch}章 失败: {(status.error or '')[:80]}[/]",
            )

    def on_chapter_complete(self, chapter: Chapter, total: int) -> None:
        super().on_chapter_complete(chapter, total)
        if not self._progress:
            return
        self._progress.update(
            self._chapter_task_id,
            total=total or None,
            completed=chapter.order,
            description=f"[green]已完成 {chapter.order}/{total} 章[/] "
                        f"([cyan]{chapter.word_count:,}[/]字)",
        )

    def on_cover_complete(self, cover_url: Optional[str]) -> None:
        super().on_cover_complete(cover_url)
        if not self._progress:
            return
        label = "[green]封面已生成[/]" if cover_url else "[yellow]封面生成失败，使用默认封面[/]"
        self._progress.update(self._stage_task_id, description=label)

    def on_error(self, stage: PipelineStage, error: Exception) -> None:
        super().on_error(stage, error)
        if not self._progress:
            return
        self._progress.update(
            self._stage_task_id,
            description=f"[red]错误 ({stage.value}): {str(error)[:80]}[/]",
        )
