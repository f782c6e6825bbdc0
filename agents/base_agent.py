"""Base agent: chat client, sectioned prompt templates, single-prompt streaming."""

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional

from config.settings import Settings
from tools.cancellation import CancelToken
from tools.chat_stream import StreamingChatClient, user_message

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).parent.parent / "config" / "prompts"

# A line holding only 【name】 starts a template section
_SECTION_HEADER_RE = re.compile(r"^【([^】]+)】$")


@lru_cache(maxsize=32)
def _read_prompt_file(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


class BaseAgent:
    """Base class for the generation agents.

    Subclasses set ``prompt_name`` to the template under config/prompts/
    they render from; it is loaded once at construction.
    """

    prompt_name: Optional[str] = None

    def __init__(
        self,
        chat_client: Optional[StreamingChatClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.chat = chat_client or StreamingChatClient(self.settings)
        self._template = self._load_prompt(self.prompt_name) if self.prompt_name else ""

    def _load_prompt(self, template_name: str) -> str:
        """Load a prompt template from config/prompts/ (cached after first read).

        Args:
            template_name: Filename without extension, e.g. 'chapter'.

        Raises:
            FileNotFoundError: No such template.
        """
        path = _PROMPTS_DIR / f"{template_name}.md"
        if not path.exists():
            raise FileNotFoundError(f"Prompt template not found: {path}")
        return _read_prompt_file(str(path))

    def _extract_section(self, template: str, section_name: str) -> str:
        """Return the body of section 【section_name】, or "" if absent."""
        capturing = False
        result = []
        for line in template.split("\n"):
            match = _SECTION_HEADER_RE.match(line.strip())
            if match:
                if capturing:
                    break
                capturing = match.group(1) == section_name
                continue
            if capturing:
                result.append(line)
        return "\n".join(result).strip()

    def _section(self, section_name: str, **fields) -> str:
        """Render one section of this agent's template with ``str.format``."""
        section = self._extract_section(self._template, section_name)
        return section.format(**fields) if fields else section

    async def _stream_prompt(
        self,
        prompt: str,
        on_update: Optional[Callable[[str], None]] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> str:
        """Send ``prompt`` as a single user message and return the full reply."""
        logger.debug("%s prompt: %d chars", type(self).__name__, len(prompt))
        return await self.chat.collect(
            [user_message(prompt)],
            on_update=on_update,
            cancel_token=cancel_token,
        )
