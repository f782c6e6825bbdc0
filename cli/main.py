"""CLI entry point: novelgen 小说生成工具。

用法：
  novelgen outline -g 玄幻 -p "少年获得传承"     只生成章节规划
  novelgen write -g 玄幻 -l medium -o novel.json  生成完整小说
  novelgen cover -t 标题 -g 玄幻                   单独生成封面
  novelgen --help                                  查看所有命令
"""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path

# Ensure UTF-8 output on Windows to avoid GBK encoding errors with Rich
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")

import click
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, MofNCompleteColumn
from rich.markup import escape

from cli.theme import (
    get_console,
    app_header,
    command_panel,
    success_panel,
    novel_summary_panel,
    outline_table,
    audio_table,
)
from config.exceptions import InvalidConfigError, NovelGenError
from config.logging_config import setup_logging
from config.settings import get_settings
from models.enums import LengthClass
from models.novel import GenerationRequest
from tools.cover_client import CoverClient
from tools.tts_client import SpeechClient
from workflow.audio import ChapterAudioService
from workflow.callbacks import RichProgressCallback
from workflow.pipeline import NovelPipeline

console = get_console()
logger = logging.getLogger(__name__)

_LENGTH_LABELS = {
    LengthClass.SHORT: "短篇",
    LengthClass.MEDIUM: "中篇",
    LengthClass.LONG: "长篇",
}


def _init_logging(verbose: bool):
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    settings = get_settings()
    setup_logging(level=level, log_dir=settings.log_dir, console_enabled=verbose)


def _request_options(func):
    """Shared options describing a GenerationRequest."""
    options = [
        click.option("--genre", "-g", required=True, help="小说类型（如：玄幻、都市、言情、悬疑）"),
        click.option("--style", "-s", default="", help="写作风格（可选）"),
        click.option("--plot", "-p", default="", help="情节构想（可选）"),
        click.option(
            "--length", "-l", "length",
            default=LengthClass.SHORT.value,
            type=click.Choice([c.value for c in LengthClass]),
            help="篇幅：short=3-5章，medium=8-12章，long=15-20章",
        ),
        click.option("--characters", default=None, help="主要角色（可选）"),
        click.option("--setting", default=None, help="背景设定（可选）"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_request(genre, style, plot, length, characters, setting) -> GenerationRequest:
    return GenerationRequest(
        genre=genre,
        style=style,
        plot=plot,
        length=LengthClass(length),
        characters=characters,
        setting=setting,
    )


def _request_fields(request: GenerationRequest) -> dict[str, str]:
    low, high = request.length.chapter_range
    fields = {
        "类型": request.genre,
        "篇幅": f"{_LENGTH_LABELS[request.length]}（{low}-{high}章）",
    }
    if request.style:
        fields["风格"] = request.style
    if request.plot:
        fields["情节"] = request.plot
    if request.characters:
        fields["角色"] = request.characters
    if request.setting:
        fields["背景"] = request.setting
    return fields


def _run_command(coro):
    """Run a command coroutine with the shared error handling."""
    try:
        return asyncio.run(coro)
    except KeyboardInterrupt:
        console.print("\n[warning]已中断[/]")
        sys.exit(130)
    except NovelGenError as e:
        console.print(f"\n[error]运行失败：{e}[/]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[error]运行失败：{e}[/]")
        logger.exception("Command failed")
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """novelgen: 流式 AI 中文小说生成工具

    \b
    先规划章节，再逐章生成正文，最后生成封面：
      novelgen outline -g 玄幻 -p "少年获得传承"
      novelgen write -g 都市 -l medium -o novel.json
      novelgen cover -t "星河彼岸" -g 科幻
    """
    try:
        _init_logging(verbose)
    except InvalidConfigError as e:
        console.print(f"[error]配置错误：{escape(str(e))}[/]")
        sys.exit(1)


# ---------------------------------------------------------------------------
# outline command
# ---------------------------------------------------------------------------

@cli.command()
@_request_options
def outline(genre, style, plot, length, characters, setting):
    """只生成章节规划（标题、简介、各章概要）。"""
    request = _build_request(genre, style, plot, length, characters, setting)
    console.print(app_header("生成章节规划"))
    console.print(command_panel("生成参数", _request_fields(request)))
    console.print()

    async def _outline():
        callback = RichProgressCallback(console=console)
        callback.start()
        try:
            async with NovelPipeline(settings=get_settings(), callback=callback) as pipeline:
                return await pipeline.generate_outline(request)
        finally:
            callback.stop()

    result = _run_command(_outline())

    console.print()
    console.print(success_panel(result.title, result.description))
    console.print(outline_table(result))


# ---------------------------------------------------------------------------
# write command
# ---------------------------------------------------------------------------

@cli.command()
@_request_options
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="将小说保存为 JSON 文件")
@click.option("--audio", is_flag=True, help="完成后为每章生成语音")
def write(genre, style, plot, length, characters, setting, output, audio):
    """生成完整小说：章节规划 → 逐章正文 → 封面。"""
    request = _build_request(genre, style, plot, length, characters, setting)
    console.print(app_header("生成小说"))
    console.print(command_panel("生成参数", _request_fields(request)))
    console.print()

    async def _write():
        settings = get_settings()
        _, max_chapters = request.length.chapter_range
        callback = RichProgressCallback(console=console, total_chapters=max_chapters)
        callback.start()
        try:
            async with NovelPipeline(settings=settings, callback=callback) as pipeline:
                novel = await pipeline.run(request)
        finally:
            callback.stop()

        audio_urls = {}
        if audio:
            async with SpeechClient(settings) as speech:
                audio_urls = await _generate_audio(ChapterAudioService(speech), novel.chapters)
        return novel, audio_urls

    novel, audio_urls = _run_command(_write())

    console.print()
    console.print(novel_summary_panel(novel))

    if output:
        data = novel.to_dict()
        if audio:
            data["audio"] = audio_urls
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        console.print(f"已保存到 [info]{output}[/]")


async def _generate_audio(service: ChapterAudioService, chapters) -> dict[str, str]:
    """Run the chapter audio batch with a progress bar."""
    progress = Progress(
        SpinnerColumn("dots"),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    )
    task_id = progress.add_task("  生成语音...", total=len(chapters))

    def _on_chapter(chapter_id: str, state: str) -> None:
        if state == "failed":
            progress.console.print(f"  [warning]{chapter_id} 语音生成失败[/]")

    def _on_overall(done: int, total: int) -> None:
        progress.update(task_id, completed=done)

    progress.start()
    try:
        results = await service.generate_batch(
            chapters,
            on_chapter_progress=_on_chapter,
            on_overall_progress=_on_overall,
        )
    finally:
        progress.stop()

    console.print(audio_table(chapters, results))
    console.print(f"语音完成：[stat.value]{len(results)}/{len(chapters)}[/] 章")
    return results


# ---------------------------------------------------------------------------
# cover command
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--title", "-t", required=True, help="小说标题")
@click.option("--genre", "-g", required=True, help="小说类型")
@click.option("--description", "-d", default="", help="小说简介（可选）")
def cover(title, genre, description):
    """为指定标题单独生成封面图片。"""
    console.print(command_panel("生成封面", {"标题": title, "类型": genre}))

    async def _cover():
        async with CoverClient(get_settings()) as client:
            with console.status("生成封面中..."):
                return await client.generate_cover(title, genre, description)

    url = _run_command(_cover())
    console.print(success_panel("封面已生成", url))


if __name__ == "__main__":
    cli()
