"""Outline Agent: streams the chapter plan and parses it into an Outline."""

import logging
from typing import Callable, Optional

from agents.base_agent import BaseAgent
from config.exceptions import OutlineGenerationError, StreamError
from models.chapter import Outline
from models.novel import GenerationRequest
from tools.cancellation import CancelToken
from tools.outline_parser import parse_outline

logger = logging.getLogger(__name__)


class OutlineAgent(BaseAgent):
    """Generates the title/description/chapter-summary skeleton."""

    prompt_name = "outline"

    def build_prompt(self, request: GenerationRequest) -> str:
        min_chapters, max_chapters = request.length.chapter_range
        return self._section(
            "创作指令",
            genre=request.genre,
            style=request.style or "不限",
            plot=request.plot or "自由发挥",
            characters_line=f"主要角色：{request.characters}" if request.characters else "",
            setting_line=f"背景设定：{request.setting}" if request.setting else "",
            min_chapters=min_chapters,
            max_chapters=max_chapters,
        )

    async def generate_outline(
        self,
        request: GenerationRequest,
        on_update: Optional[Callable[[str], None]] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> Outline:
        """Stream the outline text and parse it.

        Raises:
            OutlineGenerationError: If the stream fails.
            GenerationCancelledError: If cancelled.
        """
        prompt = self.build_prompt(request)
        logger.info("Generating outline: genre=%s, length=%s", request.genre, request.length.value)

        try:
            raw_text = await self._stream_prompt(prompt, on_update, cancel_token)
        except StreamError as e:
            raise OutlineGenerationError(f"Outline generation failed: {e}") from e

        outline = parse_outline(raw_text)
        if not outline.chapters:
            raise OutlineGenerationError(
                "Outline contains no complete chapters", {"raw_chars": len(raw_text)},
            )
        min_chapters, max_chapters = request.length.chapter_range
        if not min_chapters <= len(outline.chapters) <= max_chapters:
            logger.warning(
                "Outline has %d chapters, requested %d-%d",
                len(outline.chapters), min_chapters, max_chapters,
            )
        logger.info("Outline parsed: '%s', %d chapters", outline.title, len(outline.chapters))
        return outline
