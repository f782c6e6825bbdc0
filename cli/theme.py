"""Rich theme and renderables for the novelgen CLI."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme

NOVEL_THEME = Theme({
    "success": "green",
    "warning": "yellow",
    "error": "red",
    "info": "blue",
    "muted": "dim",
    "accent": "cyan",
    "genre": "bold",
    "stat.label": "dim",
    "stat.value": "bold",
    "chapter.num": "blue",
    "audio.ok": "green",
    "audio.missing": "dim yellow",
})

_PANEL_STYLE = {"box": box.ROUNDED, "padding": (0, 2)}


def _clip(text: str, limit: int) -> str:
    text = text or ""
    return text if len(text) <= limit else text[:limit] + "..."


def get_console() -> Console:
    return Console(theme=NOVEL_THEME)


def app_header(action: str) -> Rule:
    """Banner rule shown at the top of each command, e.g. "novelgen · 生成小说"."""
    return Rule(title=f"[bold]novelgen[/] [muted]·[/] {action}", style="dim")


def command_panel(title: str, fields: dict[str, str]) -> Panel:
    """Panel listing the parameters a command was invoked with, one per line."""
    body = "\n".join(
        f"[stat.label]{label}:[/] [stat.value]{value}[/]" for label, value in fields.items()
    )
    return Panel(body, title=f"[bold]{title}[/]", border_style="dim", **_PANEL_STYLE)


def success_panel(title: str, body: str) -> Panel:
    return Panel(body, title=f"[success]{title}[/]", border_style="green", **_PANEL_STYLE)


def novel_summary_panel(novel) -> Panel:
    """Summary of a finished Novel: genre, chapter and word counts, cover."""
    cover = novel.cover_image_url or "[muted]无（封面生成失败或未配置）[/]"
    body = (
        f"[stat.label]类型:[/] [genre]{novel.genre}[/]  "
        f"[muted]|[/]  [stat.label]章节:[/] [stat.value]{len(novel.chapters)}[/]  "
        f"[muted]|[/]  [stat.label]字数:[/] [stat.value]{novel.total_words:,}[/]\n"
        f"[stat.label]简介:[/] {_clip(novel.description, 150)}\n"
        f"[stat.label]封面:[/] {cover}"
    )
    return Panel(
        body,
        title=f"[bold]{novel.title}[/] [muted]({novel.id})[/]",
        border_style="dim",
        **_PANEL_STYLE,
    )


def outline_table(outline) -> Table:
    """One row per ChapterOutline: order, title, clipped summary."""
    table = Table(box=box.ROUNDED, border_style="dim", padding=(0, 1))
    table.add_column("章", style="chapter.num", justify="right")
    table.add_column("标题", style="accent")
    table.add_column("概要")

    for chapter in outline.chapters:
        table.add_row(str(chapter.order), chapter.title, _clip(chapter.summary, 60))
    return table


def audio_table(chapters, audio_urls: dict[str, str]) -> Table:
    """One row per chapter showing its audio URL, or that synthesis failed."""
    table = Table(box=box.SIMPLE, padding=(0, 1))
    table.add_column("章", style="chapter.num", justify="right")
    table.add_column("标题")
    table.add_column("语音")

    for chapter in chapters:
        url = audio_urls.get(chapter.id)
        cell = f"[audio.ok]{url}[/]" if url else "[audio.missing]未生成[/]"
        table.add_row(str(chapter.order), _clip(chapter.title, 20), cell)
    return table
