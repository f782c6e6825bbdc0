"""Long-text speech synthesis: create a TTS task and poll for the audio url."""

import logging
from typing import Callable, Optional

from config.exceptions import MalformedResponseError, ValidationError
from models.task import GenerationTask, normalize_speech_status
from tools.task_client import TaskApiClient
from tools.text_utils import split_text_for_speech

logger = logging.getLogger(__name__)

# Speech synthesis is slow: up to ~10 minutes
SPEECH_MAX_ATTEMPTS = 200
SPEECH_POLL_INTERVAL = 3.0
SPEECH_SEGMENT_CHARS = 1000


class SpeechClient(TaskApiClient):
    """Client for the long-text TTS task API."""

    async def create_task(
        self,
        text: str,
        voice: int = 3,
        speed: int = 5,
        pitch: int = 5,
        volume: int = 5,
        fmt: str = "mp3-16k",
        paragraph_break: int = 1000,
    ) -> str:
        """Create a synthesis task for ``text`` and return its task id.

        Args:
            text: Text to synthesize; split into segments of at most
                SPEECH_SEGMENT_CHARS characters.
            voice: Upstream voice id.
            speed: 0-15.
            pitch: 0-15.
            volume: 0-15.
            fmt: Audio format (mp3-16k, mp3-48k, wav).
            paragraph_break: Pause between segments in ms.
        """
        segments = split_text_for_speech(text, SPEECH_SEGMENT_CHARS)
        if not segments:
            raise ValidationError("Cannot synthesize empty text")

        data = await self._post(self.settings.tts_create_endpoint, {
            "text": segments,
            "format": fmt,
            "voice": voice,
            "speed": speed,
            "pitch": pitch,
            "volume": volume,
            "break": paragraph_break,
        })
        task_id = data.get("task_id")
        if not task_id:
            raise MalformedResponseError("TTS create response has no task_id", raw_response=str(data))
        logger.info("Speech task created: %s (%d segments)", task_id, len(segments))
        return str(task_id)

    async def query(self, task_id: str) -> GenerationTask:
        data = await self._post(self.settings.tts_query_endpoint, {"task_ids": [task_id]})
        tasks_info = data.get("tasks_info") or []
        if not tasks_info or not isinstance(tasks_info[0], dict):
            raise MalformedResponseError(f"Speech task {task_id} not found", raw_response=str(data))

        info = tasks_info[0]
        result = info.get("task_result") or {}
        return GenerationTask(
            task_id=task_id,
            state=normalize_speech_status(info.get("task_status")),
            result_url=result.get("speech_url") if isinstance(result, dict) else None,
            error=info.get("err_msg"),
        )

    async def wait_for_completion(
        self,
        task_id: str,
        max_attempts: int = SPEECH_MAX_ATTEMPTS,
        interval: float = SPEECH_POLL_INTERVAL,
        on_progress: Optional[Callable[[GenerationTask], None]] = None,
    ) -> str:
        """Wait for the task and return the audio url."""
        return await self._poll(task_id, max_attempts, interval, on_progress)

    async def synthesize(self, text: str, **voice_options) -> str:
        """Create a task for ``text`` and wait for the audio url."""
        task_id = await self.create_task(text, **voice_options)
        return await self.wait_for_completion(task_id)
