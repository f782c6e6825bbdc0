"""Chapter Agent: generates one chapter's prose with bounded automatic retry."""

import logging
from typing import Callable, Optional

from agents.base_agent import BaseAgent
from config.exceptions import ChapterGenerationError, StreamError
from models.chapter import Chapter, ChapterGenerationStatus, ChapterOutline, Outline
from models.enums import ChapterStatus
from models.novel import GenerationRequest
from tools.cancellation import CancelToken
from tools.text_utils import get_chapter_ending

logger = logging.getLogger(__name__)

# Automatic retries per chapter after the first attempt
MAX_RETRY_COUNT = 5

TextUpdateCallback = Callable[[int, str], None]
StatusUpdateCallback = Callable[[ChapterGenerationStatus], None]


class ChapterAgent(BaseAgent):
    """Writes a chapter from its outline entry plus neighbouring context."""

    prompt_name = "chapter"

    def build_prompt(
        self,
        chapter_index: int,
        chapter_outline: ChapterOutline,
        request: GenerationRequest,
        outline: Outline,
        previous_chapters: list[Chapter],
    ) -> str:
        """Build the chapter prompt.

        Non-first chapters embed the previous chapter's title, summary and
        the tail of its content; non-last chapters embed the next
        chapter's title and summary.
        """
        has_previous = 0 < chapter_index <= len(previous_chapters)
        is_last = chapter_index == len(outline.chapters) - 1

        context_parts = []
        if has_previous:
            prev_chapter = previous_chapters[chapter_index - 1]
            prev_outline = outline.chapters[chapter_index - 1]
            context_parts.append(self._section(
                "前一章信息",
                prev_title=prev_chapter.title,
                prev_summary=prev_outline.summary,
                prev_ending=get_chapter_ending(
                    prev_chapter.content, self.settings.continuity_tail_chars,
                ),
            ))
        if not is_last:
            next_outline = outline.chapters[chapter_index + 1]
            context_parts.append(self._section(
                "后一章信息",
                next_title=next_outline.title,
                next_summary=next_outline.summary,
            ))

        if chapter_index > 0 and not has_previous:
            logger.warning(
                "Chapter %d has no preceding chapter text, writing it as an opening",
                chapter_index + 1,
            )
        opening = "承接指令" if has_previous else "开篇指令"
        closing = "收尾指令" if is_last else "铺垫指令"

        return self._section(
            "创作指令",
            novel_title=outline.title,
            novel_description=outline.description,
            chapter_title=chapter_outline.title,
            chapter_summary=chapter_outline.summary,
            context_block="\n\n".join(context_parts),
            genre=request.genre,
            style=request.style or "不限",
            opening_instruction=self._section(opening),
            closing_instruction=self._section(closing),
        )

    async def generate(
        self,
        chapter_index: int,
        chapter_outline: ChapterOutline,
        request: GenerationRequest,
        outline: Outline,
        previous_chapters: list[Chapter],
        on_text_update: Optional[TextUpdateCallback] = None,
        on_status_update: Optional[StatusUpdateCallback] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> Chapter:
        """Generate one chapter, retrying up to MAX_RETRY_COUNT times.

        Every retry re-sends the same prompt; partial text is discarded.
        Status updates go generating(0), retrying(1..n), then success(n)
        or failed(MAX_RETRY_COUNT).

        Args:
            chapter_index: 0-based position in the outline.
            chapter_outline: The outline entry to write.
            request: Original generation request.
            outline: Full outline (for neighbour context).
            previous_chapters: Chapters already generated, in order.
            on_text_update: Receives (chapter_index, full_text_so_far).
            on_status_update: Receives ChapterGenerationStatus snapshots.
            cancel_token: Optional cancellation token.

        Returns:
            The completed Chapter.

        Raises:
            ChapterGenerationError: After MAX_RETRY_COUNT failed retries.
            GenerationCancelledError: If cancelled; never retried.
        """
        prompt = self.build_prompt(
            chapter_index, chapter_outline, request, outline, previous_chapters,
        )

        def _emit(status: ChapterStatus, attempt: int, error: Optional[str] = None) -> None:
            if on_status_update:
                on_status_update(ChapterGenerationStatus(
                    chapter_index=chapter_index,
                    status=status,
                    retry_count=attempt,
                    error=error,
                ))

        def _forward(text: str) -> None:
            if on_text_update:
                on_text_update(chapter_index, text)

        attempt = 0
        _emit(ChapterStatus.GENERATING, attempt)
        while True:
            logger.info("Writing chapter %d (attempt %d)", chapter_index + 1, attempt + 1)
            try:
                content = await self._stream_prompt(prompt, _forward, cancel_token)
                if not content.strip():
                    raise StreamError("Chat stream completed without content")
            except StreamError as e:
                if attempt < MAX_RETRY_COUNT:
                    attempt += 1
                    logger.warning(
                        "Chapter %d failed: %s. Retry %d/%d",
                        chapter_index + 1, e, attempt, MAX_RETRY_COUNT,
                    )
                    _emit(ChapterStatus.RETRYING, attempt)
                    continue

                logger.error(
                    "Chapter %d failed after %d retries: %s",
                    chapter_index + 1, MAX_RETRY_COUNT, e,
                )
                _emit(ChapterStatus.FAILED, attempt, str(e))
                raise ChapterGenerationError(chapter_index, attempt + 1) from e

            chapter = Chapter.from_outline(chapter_outline, content)
            logger.info(
                "Chapter %d written: '%s', %d chars",
                chapter_index + 1, chapter.title, chapter.word_count,
            )
            _emit(ChapterStatus.SUCCESS, attempt)
            return chapter

    async def regenerate(
        self,
        chapter_index: int,
        chapter_outline: ChapterOutline,
        request: GenerationRequest,
        outline: Outline,
        previous_chapters: list[Chapter],
        on_text_update: Optional[TextUpdateCallback] = None,
        on_status_update: Optional[StatusUpdateCallback] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> Chapter:
        """User-triggered regeneration; always starts with a fresh retry budget."""
        logger.info("Manual regeneration of chapter %d", chapter_index + 1)
        return await self.generate(
            chapter_index,
            chapter_outline,
            request,
            outline,
            previous_chapters,
            on_text_update=on_text_update,
            on_status_update=on_status_update,
            cancel_token=cancel_token,
        )
