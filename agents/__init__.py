"""Agents package: outline and chapter generation agents."""

from agents.base_agent import BaseAgent
from agents.outline_agent import OutlineAgent
from agents.chapter_agent import ChapterAgent, MAX_RETRY_COUNT

__all__ = [
    "BaseAgent",
    "OutlineAgent",
    "ChapterAgent",
    "MAX_RETRY_COUNT",
]
