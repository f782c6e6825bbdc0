"""Tests for the click CLI commands and Rich theme helpers."""

import json

import pytest
from click.testing import CliRunner

from config.exceptions import ChapterGenerationError
from models.novel import Novel


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_env(monkeypatch, settings):
    """Point the CLI at test settings and keep it from reconfiguring logging."""
    import cli.main
    monkeypatch.setattr(cli.main, "get_settings", lambda: settings)
    monkeypatch.setattr(cli.main, "setup_logging", lambda **kwargs: None)
    return cli.main


def _fake_pipeline(outline=None, novel=None, error=None):
    calls = {}

    class _FakePipeline:
        def __init__(self, settings=None, callback=None):
            calls["callback"] = callback

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc_info):
            calls["closed"] = True

        async def generate_outline(self, request):
            calls["request"] = request
            return outline

        async def run(self, request):
            calls["request"] = request
            if error:
                raise error
            return novel

    return _FakePipeline, calls


@pytest.fixture
def sample_novel(sample_outline, sample_chapters):
    return Novel(
        title=sample_outline.title,
        description=sample_outline.description,
        genre="玄幻",
        style="热血",
        chapters=sample_chapters,
        cover_image_url="https://img.test/cover.png",
    )


class TestCliGroup:
    def test_help_lists_commands(self, runner, cli_env):
        result = runner.invoke(cli_env.cli, ["--help"])
        assert result.exit_code == 0
        for command in ("outline", "write", "cover"):
            assert command in result.output

    def test_genre_is_required(self, runner, cli_env):
        result = runner.invoke(cli_env.cli, ["outline"])
        assert result.exit_code == 2
        assert "--genre" in result.output

    def test_length_choice_is_validated(self, runner, cli_env):
        result = runner.invoke(cli_env.cli, ["outline", "-g", "玄幻", "-l", "epic"])
        assert result.exit_code == 2


class TestOutlineCommand:
    def test_prints_outline(self, runner, cli_env, monkeypatch, sample_outline):
        pipeline_cls, calls = _fake_pipeline(outline=sample_outline)
        monkeypatch.setattr(cli_env, "NovelPipeline", pipeline_cls)

        result = runner.invoke(cli_env.cli, ["outline", "-g", "玄幻", "-p", "少年逆袭", "-l", "medium"])

        assert result.exit_code == 0, result.output
        assert "逆天剑尊" in result.output
        assert "标题3" in result.output
        assert calls["request"].plot == "少年逆袭"
        assert calls["request"].length.value == "medium"
        assert calls["closed"]


class TestWriteCommand:
    def test_writes_json(self, runner, cli_env, monkeypatch, sample_novel, tmp_path):
        pipeline_cls, calls = _fake_pipeline(novel=sample_novel)
        monkeypatch.setattr(cli_env, "NovelPipeline", pipeline_cls)
        output = tmp_path / "out" / "novel.json"

        result = runner.invoke(cli_env.cli, ["write", "-g", "玄幻", "-o", str(output)])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["title"] == "逆天剑尊"
        assert len(data["chapters"]) == 4
        assert "audio" not in data
        assert calls["callback"]._progress is None

    def test_audio_included(self, runner, cli_env, monkeypatch, sample_novel, tmp_path):
        pipeline_cls, _ = _fake_pipeline(novel=sample_novel)
        monkeypatch.setattr(cli_env, "NovelPipeline", pipeline_cls)

        class _FakeSpeech:
            def __init__(self, settings=None):
                pass

            async def __aenter__(self):
                return self

            async def __aexit__(self, *exc_info):
                pass

            async def synthesize(self, text):
                return f"https://audio.test/{len(text)}.mp3"

        monkeypatch.setattr(cli_env, "SpeechClient", _FakeSpeech)
        output = tmp_path / "novel.json"

        result = runner.invoke(cli_env.cli, ["write", "-g", "玄幻", "-o", str(output), "--audio"])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert set(data["audio"]) == {c.id for c in sample_novel.chapters}

    def test_generation_failure_exits_1(self, runner, cli_env, monkeypatch, tmp_path):
        pipeline_cls, _ = _fake_pipeline(error=ChapterGenerationError(1, 6))
        monkeypatch.setattr(cli_env, "NovelPipeline", pipeline_cls)
        output = tmp_path / "novel.json"

        result = runner.invoke(cli_env.cli, ["write", "-g", "玄幻", "-o", str(output)])

        assert result.exit_code == 1
        assert "Chapter 2 failed after 6 attempts" in result.output
        assert not output.exists()


class TestCoverCommand:
    def test_prints_url(self, runner, cli_env, monkeypatch):
        seen = {}

        class _FakeCover:
            def __init__(self, settings=None):
                pass

            async def __aenter__(self):
                return self

            async def __aexit__(self, *exc_info):
                pass

            async def generate_cover(self, title, genre, description=""):
                seen.update(title=title, genre=genre, description=description)
                return "https://img.test/c.png"

        monkeypatch.setattr(cli_env, "CoverClient", _FakeCover)

        result = runner.invoke(cli_env.cli, ["cover", "-t", "星河彼岸", "-g", "科幻"])

        assert result.exit_code == 0, result.output
        assert "https://img.test/c.png" in result.output
        assert seen == {"title": "星河彼岸", "genre": "科幻", "description": ""}


class TestTheme:
    def test_clip(self):
        from cli.theme import _clip
        assert _clip("短", 5) == "短"
        assert _clip("一二三四五六", 3) == "一二三..."
        assert _clip(None, 3) == ""

    def test_audio_table_marks_missing(self, sample_chapters):
        from cli.theme import audio_table, get_console
        console = get_console()
        with console.capture() as capture:
            console.print(audio_table(sample_chapters[:2], {"chapter-1": "https://a.test/1.mp3"}))
        text = capture.get()
        assert "https://a.test/1.mp3" in text
        assert "未生成" in text


class TestConfigErrors:
    def test_invalid_config_exits_1(self, runner, cli_env, monkeypatch):
        from config.exceptions import InvalidConfigError

        def broken():
            raise InvalidConfigError("Invalid configuration", {"errors": "request_timeout: must be > 0"})
        monkeypatch.setattr(cli_env, "get_settings", broken)

        result = runner.invoke(cli_env.cli, ["cover", "-t", "星河彼岸", "-g", "科幻"])

        assert result.exit_code == 1
        assert "配置错误" in result.output
        assert "request_timeout" in result.output
