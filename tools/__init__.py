"""Tools package: chat streaming, task API clients, parsing, and text utilities."""

from tools.cancellation import CancelToken, run_cancellable
from tools.chat_stream import StreamingChatClient, StreamOutcome, user_message
from tools.cover_client import CoverClient, build_cover_prompt
from tools.outline_parser import parse_outline
from tools.text_utils import get_chapter_ending, split_text_for_speech
from tools.tts_client import SpeechClient

__all__ = [
    "CancelToken",
    "run_cancellable",
    "StreamingChatClient",
    "StreamOutcome",
    "user_message",
    "CoverClient",
    "build_cover_prompt",
    "parse_outline",
    "get_chapter_ending",
    "split_text_for_speech",
    "SpeechClient",
]
