"""Shared pytest fixtures for the novelgen test suite."""

import httpx
import pytest
from unittest.mock import MagicMock, AsyncMock


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance pointing at a fake upstream and tmp_path logs."""
    from config.settings import Settings
    return Settings(
        _env_file=None,
        api_base_url="http://upstream.test/",
        app_id="test-app",
        log_dir=tmp_path / "logs",
        continuity_tail_chars=20,
    )


# ---------------------------------------------------------------------------
# HTTP fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_http():
    """Build an httpx.AsyncClient backed by a MockTransport handler."""
    def _factory(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _factory


# ---------------------------------------------------------------------------
# Chat client mock
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_chat():
    """Return a MagicMock replacing StreamingChatClient."""
    chat = MagicMock()
    chat.collect = AsyncMock(return_value="这是一段测试内容。" * 20)
    return chat


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_request():
    from models.novel import GenerationRequest
    from models.enums import LengthClass
    return GenerationRequest(genre="玄幻", style="热血", plot="少年逆袭", length=LengthClass.SHORT)


@pytest.fixture
def sample_outline():
    """Outline with four chapters."""
    from models.chapter import ChapterOutline, Outline
    return Outline(
        title="逆天剑尊",
        description="少年逆袭的故事",
        chapters=[
            ChapterOutline(id=f"chapter-{i}", title=f"第{i}章 标题{i}", summary=f"概要{i}", order=i)
            for i in range(1, 5)
        ],
    )


@pytest.fixture
def sample_chapters(sample_outline):
    from models.chapter import Chapter
    return [
        Chapter.from_outline(co, f"第{co.order}章正文。" * 10)
        for co in sample_outline.chapters
    ]
