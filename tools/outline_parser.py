"""Parser for the markdown-like outline text produced by the outline stage.

Expected shape::

    # 书名
    ## 简介
    简介内容……
    ## 第一章 章节标题
    ### 章节简介
    章节简介内容……

Parsing never fails. Chapter headings without any summary lines are
dropped (truncated generations must not yield empty chapters) and orders
are assigned densely after dropping.
"""

import logging

from models.chapter import ChapterOutline, Outline

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "未命名小说"
DEFAULT_DESCRIPTION = "暂无简介"
SUMMARY_MIN_CHARS = 300

_TITLE_PREFIX = "# "
_DESCRIPTION_MARKER = "## 简介"
_CHAPTER_PREFIX = "## 第"
_CHAPTER_SUFFIX = "章"
_SUMMARY_MARKER = "### 章节简介"


def _is_chapter_heading(line: str) -> bool:
    return line.startswith(_CHAPTER_PREFIX) and _CHAPTER_SUFFIX in line


def parse_outline(raw_text: str) -> Outline:
    """Convert raw outline text into an Outline (best effort)."""
    title = ""
    description_lines: list[str] = []
    chapters: list[ChapterOutline] = []

    chapter_title: str | None = None
    summary_lines: list[str] = []
    in_description = False
    in_summary = False

    def flush() -> None:
        if chapter_title is None:
            return
        if not summary_lines:
            logger.debug("Dropping outline chapter without summary: %s", chapter_title)
            return
        order = len(chapters) + 1
        chapters.append(ChapterOutline(
            id=f"chapter-{order}",
            title=chapter_title,
            summary="\n".join(summary_lines),
            order=order,
        ))

    for raw_line in (raw_text or "").splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith(_TITLE_PREFIX):
            if not title:
                title = line[len(_TITLE_PREFIX):].strip()
            in_description = in_summary = False
            continue

        if line.startswith(_DESCRIPTION_MARKER):
            in_description, in_summary = True, False
            continue

        if _is_chapter_heading(line):
            flush()
            chapter_title = line[2:].strip()
            summary_lines = []
            in_description = in_summary = False
            continue

        if line.startswith(_SUMMARY_MARKER):
            in_summary = chapter_title is not None
            in_description = False
            continue

        if line.startswith("#"):
            # Unrecognized heading ends the active block
            in_description = in_summary = False
            continue

        if in_description:
            description_lines.append(line)
        elif in_summary:
            summary_lines.append(line)

    flush()

    short = [c for c in chapters if len(c.summary) < SUMMARY_MIN_CHARS]
    if short:
        logger.warning(
            "Chapter summaries under %d chars: %s",
            SUMMARY_MIN_CHARS,
            ", ".join(f"{c.title} ({len(c.summary)})" for c in short),
        )

    return Outline(
        title=title or DEFAULT_TITLE,
        description="\n".join(description_lines) or DEFAULT_DESCRIPTION,
        chapters=chapters,
    )
